"""Request-layer settings, read from the environment."""
import os

# request key where the session provider stores the session mapping
SESSION_KEY = os.environ.get("ACCESS_VAULT_SESSION_KEY", "session")
# entry of the session mapping holding the principal id
SESSION_USER_KEY = os.environ.get("ACCESS_VAULT_SESSION_USER_KEY", "user_id")
API_PREFIX = os.environ.get("ACCESS_VAULT_API_PREFIX", "/api")
