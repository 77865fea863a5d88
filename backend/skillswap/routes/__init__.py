# Routes package init
"""
SkillSwap Backend — API Routes Package
========================================

What:  HTTP and WebSocket handlers that accept requests and return responses.

Route Inventory:
    - users.py:        /api/users        (auth, profiles, skill sets)
    - skills.py:       /api/skills       (skill taxonomy CRUD)
    - connections.py:  /api/connections  (connection request state machine)
    - chat.py:         /api/chat, /ws/chat (direct messages)
    - health.py:       GET /health

Design Principle:
    Routes are THIN. They extract data from the request, call a service and
    shape the response. Business rules live in services so they can be
    tested without HTTP.
"""
