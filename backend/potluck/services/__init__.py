"""
Potluck Backend: Services Layer
================================

What:  Business rules between the routes (HTTP) and the database/object store.

Service Inventory:
    - TokenCodec: issues and verifies signed bearer tokens (PyJWT)
    - passwords: bcrypt hashing helpers
    - OwnershipGuard: author check before every update/delete
    - ObjectStorage (S3 / local): where uploaded bytes go
    - MediaAttachmentService: validate → upload → media row
    - UserService, PostService, RecipeService, MealPlanService: write pipelines
    - RecipeComposer: atomic multi-table recipe writes
    - pagination: permissive limit/offset parsing

Services receive their collaborators (session, storage, settings) through
their constructors; routes build them via potluck.dependencies.
"""
