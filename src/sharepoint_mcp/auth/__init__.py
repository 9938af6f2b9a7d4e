"""MSAL delegated authentication: token cache and auth session."""
