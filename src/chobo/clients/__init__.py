"""Outbound service clients for chobo."""

from chobo.clients.ai_classifier import AIClassifierClient, AIClassifierError, AIClassification

__all__ = ["AIClassifierClient", "AIClassifierError", "AIClassification"]
