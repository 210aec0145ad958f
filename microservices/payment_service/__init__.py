"""
Payment Service

众筹出资：发起出资、核验结算、里程碑分配和筹款统计
"""

__version__ = "1.0.0"
__service__ = "payment_service"
