"""Users app package.

Defines the custom user model (email login, user/admin roles,
Instagram profile, preferences), JWT authentication endpoints and the
admin user management API. Use ``apps.users.models.User`` as the
AUTH_USER_MODEL throughout the project.
"""
