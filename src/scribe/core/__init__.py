"""scribe core: stream reassembly, inference client, run interceptor and inline trigger."""

from scribe.core.controller import AssistController, close_controller, get_controller
from scribe.core.errors import InferenceError, ScribeError, SetupError
from scribe.core.inference import FALLBACK_TEXT, InferenceClient
from scribe.core.interceptor import RunInterceptor, RunOutcome
from scribe.core.stream import StreamCollector, collect_stream
from scribe.core.trigger import FireResult, InlineSuggestionTrigger, TriggerState
from scribe.core.types import EditorCursor, HostBindings

__all__ = [
    "FALLBACK_TEXT",
    "AssistController",
    "EditorCursor",
    "FireResult",
    "HostBindings",
    "InferenceClient",
    "InferenceError",
    "InlineSuggestionTrigger",
    "RunInterceptor",
    "RunOutcome",
    "ScribeError",
    "SetupError",
    "StreamCollector",
    "TriggerState",
    "close_controller",
    "collect_stream",
    "get_controller",
]
