"""
Prompt templates for the customer service assistant.
Contains the company knowledge base, the system prompt and per-message prompt sections.
"""

from typing import Dict, List, Optional


KNOWLEDGE_BASE: Dict[str, Dict[str, str]] = {
    "policies": {
        "returns": "30-day return policy for all items in original condition with receipt",
        "shipping": "Free shipping on orders over $50. Standard delivery 3-5 business days, express 1-2 days",
        "refunds": "Refunds processed within 5-7 business days to original payment method",
        "warranty": "1-year manufacturer warranty on all electronics, extended warranty available",
        "exchanges": "Exchanges allowed within 30 days for same or similar items",
        "cancellations": "Orders can be cancelled within 1 hour of placement for full refund",
        "privacy": "We protect your data with industry-standard encryption and never share with third parties"
    },
    "faqs": {
        "how_to_return": "Go to your account > Orders > Select order > Request return. We'll send a prepaid label.",
        "shipping_cost": "Free shipping over $50. Under $50 is $5.99 standard, $9.99 express.",
        "payment_methods": "We accept Visa, MasterCard, American Express, PayPal, Apple Pay, and Google Pay.",
        "track_package": "Use your order number on our tracking page or check email for updates.",
        "change_address": "Contact us within 1 hour of order for address changes.",
        "international_shipping": "We ship to US, Canada, EU, UK, Australia. International rates apply."
    },
    "products": {
        "electronics": "Laptops, phones, tablets, headphones and smart home devices from top brands.",
        "accessories": "Cases, chargers, cables, screen protectors and other tech accessories.",
        "services": "Tech support, setup assistance, warranty extensions and repair services."
    }
}


class CustomerServicePromptTemplates:
    """Collection of prompt templates for the customer service assistant."""

    COMPANY_NAME = "TechStore Pro"

    SYSTEM_PROMPT = """You are an expert customer service assistant for {company}, a technology retailer.

GUIDELINES:
- Be helpful, professional and empathetic
- Provide specific, actionable solutions with step-by-step instructions
- Ask clarifying questions when needed
- Escalate to human agents for complex issues or when requested
- Keep responses concise (100-300 words when possible)
- End with an offer to assist further

COMPANY POLICIES:
{policies}

FREQUENTLY ASKED QUESTIONS:
{faqs}

PRODUCT INFORMATION:
{products}

If you cannot help with something, politely explain the limitation and offer human escalation."""

    MESSAGE_TEMPLATE = """CURRENT USER MESSAGE: {message}

Please provide a helpful response based on all available context:"""

    @staticmethod
    def _format_section(entries: Dict[str, str]) -> str:
        return "\n".join(
            f"- {key.replace('_', ' ').capitalize()}: {value}" for key, value in entries.items()
        )

    @classmethod
    def get_system_prompt(cls, knowledge_base: Optional[Dict[str, Dict[str, str]]] = None) -> str:
        """Render the system prompt with the knowledge base."""
        kb = knowledge_base or KNOWLEDGE_BASE
        return cls.SYSTEM_PROMPT.format(
            company=cls.COMPANY_NAME,
            policies=cls._format_section(kb.get("policies", {})),
            faqs=cls._format_section(kb.get("faqs", {})),
            products=cls._format_section(kb.get("products", {}))
        )

    @classmethod
    def format_history(cls, exchanges: List[Dict[str, str]]) -> str:
        """Format prior user/assistant exchanges."""
        if not exchanges:
            return ""
        lines = ["CONVERSATION HISTORY:"]
        for exchange in exchanges:
            lines.append(f"User: {exchange['user']}")
            lines.append(f"Assistant: {exchange['assistant']}")
        return "\n".join(lines)

    @classmethod
    def format_context(
        cls,
        intent: Optional[str] = None,
        order_id: Optional[str] = None,
        order_status: Optional[str] = None,
        emotion: Optional[str] = None,
        emotion_intensity: Optional[float] = None,
        ticket_id: Optional[str] = None
    ) -> str:
        """Format the per-message context lines."""
        lines = []
        if order_id:
            line = f"ORDER CONTEXT: Customer is asking about order {order_id}"
            if order_status:
                line += f" (status: {order_status})"
            else:
                line += " (not found in our system)"
            lines.append(line)
        if emotion and emotion_intensity:
            lines.append(f"USER EMOTION: Customer seems {emotion} (intensity: {emotion_intensity:.2f})")
        if intent:
            lines.append(f"DETECTED INTENT: {intent}")
        if ticket_id:
            lines.append(f"SUPPORT TICKET: {ticket_id} has been created; mention it in the reply")
        return "\n".join(lines)

    @classmethod
    def format_message(cls, message: str) -> str:
        return cls.MESSAGE_TEMPLATE.format(message=message)


FALLBACK_REPLIES: List[str] = [
    "I apologize, but I'm having trouble processing your request right now. Let me connect you "
    "with a human agent who can better assist you with personalized support.",
    "I'm experiencing some technical difficulties. In the meantime, you can check our FAQ section "
    "or I can create a support ticket for you to get detailed assistance.",
    "I want to make sure I give you accurate and complete information. Would you like me to "
    "connect you with a specialist who can help with your specific question?"
]

FALLBACK_SUGGESTIONS: List[str] = ['Speak to human agent', 'Try again', 'Check FAQ']
