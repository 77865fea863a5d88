# Services package init
"""
SkillSwap Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and the database.
Why:   Routes handle HTTP; services handle business rules and raise the typed
       exceptions from skillswap.exceptions.

Service Inventory:
    - skill_resolver:     Skill token (id or name) → canonical skill id
    - skill_service:      Skill taxonomy CRUD
    - user_service:       Profiles and teach/learn skill sets
    - auth_service:       Registration, password and OAuth login, token issue
    - oauth_service:      Facebook / LinkedIn / Google profile retrieval (httpx)
    - connection_queries: Stateless pair and per-user connection lookups
    - connection_service: Connection request state machine
    - message_service:    Direct message storage and conversations
    - presence:           In-process registry of online chat sockets

Every service takes the request's AsyncSession as its first argument and never
commits; get_db_session commits once the route returns.
"""
