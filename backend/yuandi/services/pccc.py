"""
개인통관고유부호(PCCC) 검증
- 형식: P + 숫자 12자리 (예: P123456789012)
- 검증 실패는 예외 대신 원인별 에러 코드/메시지를 담은 결과로 반환한다.
"""

import re
from dataclasses import dataclass

from yuandi.config import settings

PCCC_PATTERN = re.compile(r"^P\d{12}$", re.ASCII)
_DIGITS = re.compile(r"^[0-9]*$")
_SEPARATORS = re.compile(r"[\s\-_]")

PCCC_DIGITS = 12

# 실패 원인 코드
EMPTY = "EMPTY"
MISSING_PREFIX = "MISSING_PREFIX"
NON_DIGIT = "NON_DIGIT"
WRONG_LENGTH = "WRONG_LENGTH"

MESSAGES = {
    "ko": {
        EMPTY: "개인통관고유부호는 필수 입력 항목입니다",
        MISSING_PREFIX: "개인통관고유부호는 P로 시작해야 합니다",
        NON_DIGIT: "P 뒤에는 숫자만 입력할 수 있습니다",
        WRONG_LENGTH: "P 뒤에 숫자 12자리를 입력해야 합니다",
    },
    "zh": {
        EMPTY: "个人通关码为必填项",
        MISSING_PREFIX: "个人通关码必须以P开头",
        NON_DIGIT: "P后面只能输入数字",
        WRONG_LENGTH: "P后面必须是12位数字",
    },
}


@dataclass
class PCCCValidationResult:
    valid: bool
    normalized: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict:
        data = {"valid": self.valid}
        if self.normalized is not None:
            data["normalized"] = self.normalized
        if self.error is not None:
            data["error"] = self.error
            data["error_code"] = self.error_code
        return data


def _message(code: str, locale: str | None) -> str:
    table = MESSAGES.get(locale or settings.DEFAULT_LOCALE, MESSAGES["ko"])
    return table[code]


def validate_pccc(code: str | None, locale: str | None = None) -> PCCCValidationResult:
    """
    PCCC 형식 검증.
    앞뒤 공백 제거 + 대문자 변환 후 다음 순서로 검사한다:
      빈 값 → P 접두어 → 숫자 여부 → 자릿수
    """
    cleaned = (code or "").strip().upper()

    if not cleaned:
        failed = EMPTY
    elif not cleaned.startswith("P"):
        failed = MISSING_PREFIX
    elif not _DIGITS.match(cleaned[1:]):
        failed = NON_DIGIT
    elif len(cleaned) - 1 != PCCC_DIGITS:
        failed = WRONG_LENGTH
    else:
        return PCCCValidationResult(valid=True, normalized=cleaned)

    return PCCCValidationResult(
        valid=False, error=_message(failed, locale), error_code=failed,
    )


def normalize_pccc(code: str | None) -> str | None:
    """공백/하이픈/밑줄을 제거한 표준형 반환. 형식이 맞지 않으면 None."""
    if not code:
        return None
    cleaned = _SEPARATORS.sub("", code).upper()
    return cleaned if PCCC_PATTERN.match(cleaned) else None


def mask_pccc(code: str | None, show_last: int = 4) -> str:
    """개인정보 보호용 마스킹: P-****-****-9012"""
    normalized = normalize_pccc(code)
    if not normalized:
        return ""

    mask_length = PCCC_DIGITS - show_last
    if mask_length <= 0:
        return normalized

    masked = "P" + "*" * mask_length + normalized[-show_last:]
    # 기본값(뒤 4자리 노출)일 때만 4-4-4로 끊어 보여준다
    if show_last == 4:
        return f"P-{masked[1:5]}-{masked[5:9]}-{masked[9:]}"
    return masked


def format_pccc_input(raw: str) -> str:
    """입력 중인 값을 P-1234-5678-9012 형태로 정리"""
    cleaned = re.sub(r"[^P0-9]", "", (raw or "").upper())
    digits = cleaned.replace("P", "")[:PCCC_DIGITS]
    if not digits:
        return "P"

    parts = [digits[i:i + 4] for i in range(0, len(digits), 4)]
    return "P-" + "-".join(parts)


def validate_pccc_batch(codes: list[str], locale: str | None = None) -> dict[str, PCCCValidationResult]:
    return {code: validate_pccc(code, locale) for code in codes}
