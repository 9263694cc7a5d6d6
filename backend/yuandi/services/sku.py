"""
SKU 자동 생성
- 패턴: [카테고리]-[모델]-[색상]-[브랜드]-[HASH5]
  예: BAG-LINDY2-BLK-HER-7K2QZ
- 각 필드는 영문/숫자만 남기고 대문자로 변환 후 길이를 자른다.
- HASH5는 입력값 + 나노초 타임스탬프 + 난수 솔트의 SHA-256을 36진수로 표현한 앞 5자리.
- 유일성은 확률적이므로 DB 저장 전 generate_unique_sku()로 중복을 확인한다.
"""

import hashlib
import logging
import re
import secrets
import string
import time
from dataclasses import dataclass

from sqlalchemy.orm import Session

from yuandi.errors import DuplicateIdentifier
from yuandi.models import Product

logger = logging.getLogger(__name__)

SEPARATOR = "-"
HASH_LENGTH = 5
SKU_PATTERN = re.compile(
    r"^[A-Z0-9]{2,6}-[A-Z0-9]{2,6}-[A-Z0-9]{1,3}-[A-Z0-9]{2,4}-[A-Z0-9]{5}$"
)

_BASE36 = string.digits + string.ascii_uppercase
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

# 필드별 (최대 길이, 최소 길이, 빈 값 대체 코드)
FIELD_RULES = {
    "category": (3, 2, "XXX"),
    "model": (6, 2, "XXXX"),
    "color": (3, 1, "X"),
    "brand": (3, 2, "XX"),
}


@dataclass
class SKUParts:
    category: str
    model: str
    color: str
    brand: str
    hash: str


def _sanitize(text: str | None, field: str) -> str:
    max_len, min_len, placeholder = FIELD_RULES[field]
    cleaned = _NON_ALNUM.sub("", "" if text is None else str(text)).upper()[:max_len]
    if not cleaned:
        return placeholder
    return cleaned.ljust(min_len, "X")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _hash5(raw: str) -> str:
    seed = f"{raw}|{time.time_ns()}|{secrets.token_hex(16)}"
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return _to_base36(int.from_bytes(digest, "big"))[:HASH_LENGTH].rjust(HASH_LENGTH, "0")


def generate_sku(category: str = "", model: str = "", color: str = "", brand: str = "") -> str:
    """
    SKU 생성. 어떤 입력에도 예외를 던지지 않는다.
    한글 등 비ASCII 문자만으로 된 필드는 대체 코드(XXX 등)로 채워진다.
    """
    parts = [
        _sanitize(category, "category"),
        _sanitize(model, "model"),
        _sanitize(color, "color"),
        _sanitize(brand, "brand"),
    ]
    raw = "\x1f".join("" if v is None else str(v) for v in (category, model, color, brand))
    parts.append(_hash5(raw))
    return SEPARATOR.join(parts)


def is_valid_sku(sku: str | None) -> bool:
    return bool(sku) and SKU_PATTERN.match(sku) is not None


def parse_sku(sku: str | None) -> SKUParts | None:
    if not is_valid_sku(sku):
        return None
    category, model, color, brand, hash_ = sku.split(SEPARATOR)
    return SKUParts(category=category, model=model, color=color, brand=brand, hash=hash_)


def generate_unique_sku(
    db: Session,
    category: str = "",
    model: str = "",
    color: str = "",
    brand: str = "",
    max_attempts: int = 5,
) -> str:
    """
    DB에 없는 SKU가 나올 때까지 재생성한다 (SELECT 후 INSERT 패턴).
    INSERT 시점의 유니크 제약 위반은 호출자가 처리한다.
    """
    sku = ""
    for attempt in range(1, max_attempts + 1):
        sku = generate_sku(category, model, color, brand)
        exists = db.query(Product.id).filter(Product.sku == sku).first()
        if exists is None:
            return sku
        logger.warning(f"SKU 충돌, 재생성 ({attempt}/{max_attempts}): {sku}")

    raise DuplicateIdentifier("sku", sku)
