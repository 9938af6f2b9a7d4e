"""Microsoft Graph transport, SharePoint resource client and models."""
