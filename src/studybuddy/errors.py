"""
StudyBuddy Errors

Exception hierarchy shared by the realtime relay and the quiz generator.
"""


class StudyBuddyError(Exception):
    """Base class for all StudyBuddy errors."""


class ConfigurationError(StudyBuddyError):
    """Required configuration (such as the OpenAI API key) is missing."""


class UpstreamConnectError(StudyBuddyError):
    """The upstream realtime connection could not be opened."""


class UpstreamRuntimeError(StudyBuddyError):
    """An already-open upstream realtime connection failed."""


class QuizGenerationError(StudyBuddyError):
    """The quiz generator could not produce a valid list of questions."""
