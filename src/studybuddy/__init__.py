"""
StudyBuddy

Backend functions for the StudyBuddy study platform: a realtime voice-chat
relay to the OpenAI Realtime API and an AI quiz generator.
"""

__version__ = "0.1.0"
