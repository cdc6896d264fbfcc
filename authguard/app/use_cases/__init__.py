"""
Use Cases

Organized into domain folders:
- auth/: Registration, sign-in, password reset, email verification
- account/: Credential changes for the signed-in user
"""
