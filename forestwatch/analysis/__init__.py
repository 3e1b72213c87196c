"""Hosted-model analysis: service client, failure types and the session store."""
