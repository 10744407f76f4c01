"""
Authentication for the results dashboard.

- Credentials login is delegated to the backend (`/auth/login`); we only keep the
  opaque bearer token it issues.
- Console: signed, HttpOnly session cookie.
- CLI: session file readable only by the current user.
"""
