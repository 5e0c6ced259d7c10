"""
Core of the customer service chat agent.
"""
