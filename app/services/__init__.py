"""
Services Layer
Presentation-specific services, data getters, and helper classes used primarily in routes.

Services should:
- Not modify ledger state or business rules
- Be presentation-focused - used primarily by routes
- Can read from multiple data models to aggregate information
- Be stateless where possible
"""
