# Routes package init
"""
TIL Backend — Routes Package
============================

What:  HTTP handlers. Thin: parse the request, call repositories/services,
       shape the response.

Route Inventory:
    - acronyms.py:    /api/acronyms    (CRUD, search, first, sorted, tags)
    - users.py:       /api/users       (CRUD, acronyms, POST /login → token)
    - categories.py:  /api/categories  (CRUD, acronyms)
    - health.py:      GET /health
    - website.py:     HTML pages, login/register, Google OAuth callback
    - deps.py:        bearer / basic / session dependencies, WebContext
"""
