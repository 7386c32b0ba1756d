from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from backend.app.core.config import RelayConfig
from backend.app.core.errors import ErrorKind, UpstreamError
from backend.app.models.results import OperationResult
from backend.app.models.session import ChatRequest, SessionRecord, Turn
from backend.app.services import quota

NO_CREDENTIAL = "No API key is configured for this service."
QUOTA_EXHAUSTED = "Your trial uses are exhausted. Redeem a code or add your own API key."
NON_OBJECT_RESPONSE = "Upstream returned a non-object body"


class ChatStage(str, Enum):
    ADMITTED = "admitted"
    FORWARDED = "forwarded"
    APPENDED = "appended"
    REJECTED = "rejected"


def extract_model_turn(response: Any) -> Optional[Turn]:
    """The first candidate's content, if the upstream produced one."""
    if not isinstance(response, dict):
        return None
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict) or not content.get("parts"):
        return None
    try:
        return Turn.model_validate({"role": "model", **content})
    except ValidationError:
        logger.warning("Upstream content did not look like a turn; not storing it")
        return None


class ChatOrchestrator:
    """
    Admitted -> Forwarded -> {Appended, Rejected}.
    Mutates the record in place; persisting it is the caller's job.
    """

    def __init__(self, config: RelayConfig, upstream):
        self.config = config
        self.upstream = upstream

    def resolve_model(self, record: SessionRecord, request: ChatRequest) -> str:
        if any(turn.has_binary() for turn in request.contents):
            return self.config.multimodal_model
        return request.model or record.model

    def policy(self) -> Dict[str, Any]:
        return {
            "generationConfig": self.config.generation_config(),
            "safetySettings": self.config.safety_settings(),
        }

    def admit(self, record: SessionRecord) -> Optional[OperationResult]:
        credential = record.credential or self.config.default_credential
        if not credential:
            logger.error("Chat rejected: no credential available")
            return OperationResult.failure(ErrorKind.CONFIGURATION, NO_CREDENTIAL, record=record)
        if not quota.can_spend(record):
            return OperationResult.failure(ErrorKind.QUOTA_EXHAUSTED, QUOTA_EXHAUSTED, record=record)
        return None

    async def run(self, record: SessionRecord, request: ChatRequest) -> OperationResult:
        rejection = self.admit(record)
        if rejection is not None:
            return rejection
        logger.debug(f"Chat turn {ChatStage.ADMITTED.value}")

        model = self.resolve_model(record, request)
        contents: List[Dict[str, Any]] = [turn.model_dump(mode="json") for turn in request.contents]
        credential = record.credential or self.config.default_credential

        try:
            response = await self.upstream.generate(
                model, contents, self.policy(), credential, tools=request.tools
            )
        except UpstreamError as e:
            logger.debug(f"Chat turn {ChatStage.REJECTED.value} ({e.status_code})")
            return OperationResult.failure(ErrorKind.UPSTREAM, e.message, record=record, status_code=e.status_code)
        if not isinstance(response, dict):
            logger.warning(f"Upstream {model} returned a {type(response).__name__} body")
            return OperationResult.failure(ErrorKind.UPSTREAM, NON_OBJECT_RESPONSE, record=record)
        logger.debug(f"Chat turn {ChatStage.FORWARDED.value} to {model}")

        quota.debit(record)

        conversation = record.active_conversation
        if conversation is not None:
            conversation.history.append(request.contents[-1])
            model_turn = extract_model_turn(response)
            if model_turn is not None:
                conversation.history.append(model_turn)
            logger.debug(f"Chat turn {ChatStage.APPENDED.value} to {conversation.id}")
        else:
            logger.info("No active conversation; turn answered but not stored")

        return OperationResult.success(record=record, data=response)
