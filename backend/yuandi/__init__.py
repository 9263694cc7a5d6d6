"""
YUANDI Collection — 주문·재고 정합성 서비스
"""

__version__ = "0.1.0"
