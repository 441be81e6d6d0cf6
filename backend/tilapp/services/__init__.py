# Services package init
"""
TIL Backend — Services Layer
============================

What:  Business rules between the routes and the repositories.

Service Inventory:
    - TagReconciler:       converge an acronym's categories onto a name set
    - AuthService:         password hashing, basic/bearer/session/Google login
    - GoogleOAuthService:  HTTP client for Google's OAuth endpoints
"""
