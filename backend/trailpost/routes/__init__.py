# Routes package init
"""
Trailpost Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource; all delegate to services.

Route Inventory:
    - auth.py:    POST /api/auth/register, POST /api/auth/login
    - posts.py:   POST /api/posts, GET /api/posts,
                  POST /api/posts/{id}/like|unlike|save|unsave|comment
    - users.py:   GET|PUT /api/users/profile, GET /api/users/profile/{id},
                  GET /api/users/search, GET /api/users/feed,
                  POST /api/users/{id}/follow|unfollow
    - media.py:   GET /uploads/{path}           (stored photos and avatars)
    - health.py:  GET /health                   (service health check)

Routes stay thin: read the request, call a service, return its result.
The caller's identity always comes from the bearer token, never from the
request body.
"""
