"""
Potluck Backend: API Routes Package
====================================

Route Inventory:
    - auth.py:        POST /signup, POST /login, GET /me
    - posts.py:       /posts, /posts/{id}
    - recipes.py:     /api/recipes, /api/recipes/{id}, /api/recipes/author/{author_id}
    - meal_plans.py:  /api/meal-plans, /api/meal-plans/{id}, /api/meal-plans/author/{author_id}
    - media.py:       /api/media, /api/media/{id}, /media/files/{key} (local storage)
    - health.py:      GET /health

Routes stay thin: read the request, call one service method, shape the
response. Everything except /signup, /login, /health and local media files
sits behind get_current_identity.
"""
