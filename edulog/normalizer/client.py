"""
Rewrites free-text observations into the formal school-record register.
"""

from enum import Enum
from typing import Optional

from edulog.shared.config import settings
from edulog.shared.exceptions import (
    EmptyInputError,
    InvalidCredentialError,
    NormalizationBusyError,
    NormalizationCredentialMissing,
    NormalizationEmptyResult,
    NormalizationFailed,
)
from edulog.shared.llm import LLMClient, LLMError, LLMProvider
from edulog.shared.logging import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = """당신은 대한민국 고등학교의 베테랑 교사입니다.
다음 원칙에 따라 학생의 활동 관찰 기록을 생활기록부용 문장으로 변환하세요:
1. 전문적인 교육 용어를 사용하며, 문장은 반드시 '~함', '~임'으로 끝나는 명사형 종결 어미를 사용하십시오.
2. 학생의 구체적인 행동과 그로 인한 변화나 성장을 중점적으로 서술하십시오.
3. 결과물만 출력하고 인사말이나 부연 설명은 절대 하지 마십시오."""

USER_PROMPT_PREFIX = "다음 내용을 생기부 문체로 변환해줘: "

MSG_CREDENTIAL_MISSING = "API_KEY 환경 변수가 설정되어 있지 않습니다. 설정을 확인해 주세요."
MSG_INVALID_CREDENTIAL = "유효하지 않은 API Key입니다. 설정을 다시 확인해 주세요."
MSG_EMPTY_RESULT = "AI 응답이 비어있습니다."
MSG_FAILED = "AI 변환 중 오류가 발생했습니다."
MSG_BUSY = "이미 변환 중입니다."
MSG_EMPTY_INPUT = "변환할 내용이 없습니다."


class NormalizerState(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    IDLE_WITH_TEXT = "idle_with_text"
    IDLE_WITH_ERROR = "idle_with_error"


def build_prompt(raw_text: str) -> str:
    return f"{USER_PROMPT_PREFIX}{raw_text.strip()}"


def _mentions_api_key(message: str) -> bool:
    lowered = message.lower()
    return "api key" in lowered or "api_key" in lowered


class TextNormalizer:
    """
    Single request/response call to the generative endpoint.

    One call at a time: a second call while one is pending is refused.
    An in-flight call cannot be cancelled.
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        api_key: Optional[str] = None,
        provider: Optional[str] = None
    ):
        self._llm = llm
        self.api_key = api_key
        self.provider = provider or settings.llm.provider
        self.busy = False
        self.state = NormalizerState.IDLE

    def _configured_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        if self._llm is not None:
            return getattr(self._llm, "api_key", None)
        if self.provider == LLMProvider.OPENAI:
            return settings.llm.openai_api_key
        if self.provider == LLMProvider.ANTHROPIC:
            return settings.llm.anthropic_api_key
        return settings.llm.gemini_api_key

    def has_credential(self) -> bool:
        key = self._configured_key()
        return bool(key) and len(key.strip()) >= settings.llm.min_key_length

    def _client(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient(provider=self.provider, api_key=self._configured_key())
        return self._llm

    async def normalize(self, raw_text: str) -> str:
        """
        Return raw_text rewritten in the formal register.

        Raises:
            EmptyInputError if there is nothing to rewrite
            NormalizationBusyError if a call is already pending
            NormalizationCredentialMissing before any request when no usable key exists
            InvalidCredentialError when the provider rejects the key
            NormalizationEmptyResult when the provider returns no text
            NormalizationFailed for anything else
        """
        if not raw_text or not raw_text.strip():
            raise EmptyInputError(MSG_EMPTY_INPUT)
        if self.busy:
            raise NormalizationBusyError(MSG_BUSY)
        if not self.has_credential():
            self.state = NormalizerState.IDLE_WITH_ERROR
            raise NormalizationCredentialMissing(MSG_CREDENTIAL_MISSING)

        self.busy = True
        self.state = NormalizerState.NORMALIZING
        try:
            client = self._client()
            result = await client.get_completion(
                prompt=build_prompt(raw_text),
                system_prompt=SYSTEM_INSTRUCTION,
                temperature=settings.llm.temperature,
                top_p=settings.llm.top_p,
                max_tokens=settings.llm.max_output_tokens,
            )
        except LLMError as e:
            self.state = NormalizerState.IDLE_WITH_ERROR
            logger.error(f"Normalization failed: {e}", extra={"action": "normalize"})
            if _mentions_api_key(str(e)):
                raise InvalidCredentialError(MSG_INVALID_CREDENTIAL) from e
            raise NormalizationFailed(str(e) or MSG_FAILED) from e
        finally:
            self.busy = False

        if not result or not result.strip():
            self.state = NormalizerState.IDLE_WITH_ERROR
            raise NormalizationEmptyResult(MSG_EMPTY_RESULT)

        self.state = NormalizerState.IDLE_WITH_TEXT
        logger.info("Normalization complete", extra={"action": "normalize", "chars": len(result)})
        return result.strip()

    async def aclose(self):
        if self._llm is not None:
            await self._llm.aclose()
