"""
SkillSwap Backend — API Schemas Package
=========================================

Pydantic request/response contracts, one module per resource.
"""
