"""全局异常处理器"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from englishhub.app.core.exceptions import status_code_for

logger = logging.getLogger(__name__)

# 字段名 → 越南语显示名
_FIELD_NAMES: dict[str, str] = {
    "email": "Email",
    "password": "Mật khẩu",
    "full_name": "Họ tên",
    "title": "Tiêu đề",
    "content_text": "Nội dung câu hỏi",
    "price": "Giá",
    "duration_minutes": "Thời lượng",
    "list_question_ids": "Danh sách câu hỏi",
    "correct_answer": "Đáp án đúng",
    "options": "Các lựa chọn",
    "score": "Điểm",
}

# 错误类型 → 提示模板（{field} 会被替换为字段显示名）
_ERROR_MESSAGES: dict[str, str] = {
    "missing": "Vui lòng nhập {field}",
    "string_too_short": "{field} quá ngắn, vui lòng kiểm tra lại",
    "string_too_long": "{field} vượt quá độ dài cho phép",
    "value_error": "{field} không hợp lệ",
    "string_type": "{field} không hợp lệ",
    "enum": "{field} không nằm trong các giá trị cho phép",
    "greater_than": "{field} phải lớn hơn giá trị tối thiểu",
    "greater_than_equal": "{field} không được nhỏ hơn giá trị tối thiểu",
    "less_than_equal": "{field} vượt quá giá trị tối đa",
}


def _friendly_validation_message(errors: list[dict]) -> str:
    """把 Pydantic validation errors 转成第一条友好提示"""
    for err in errors:
        loc = err.get("loc", [])
        field_key = loc[-1] if loc else ""
        field_name = _FIELD_NAMES.get(str(field_key), str(field_key))
        err_type = err.get("type", "")

        # 邮箱格式单独处理（type 为 value_error，msg 含 email）
        msg_raw = err.get("msg", "").lower()
        if "email" in msg_raw or "email" in err_type:
            return "Vui lòng nhập địa chỉ email hợp lệ"

        # 自定义校验器抛出的 ValueError，直接使用其消息
        if err_type == "value_error" and err.get("ctx", {}).get("error"):
            return str(err["ctx"]["error"])

        template = _ERROR_MESSAGES.get(err_type)
        if template:
            return template.format(field=field_name)

        # 兜底
        if field_name:
            return f"{field_name} không hợp lệ, vui lòng kiểm tra lại"

    return "Dữ liệu gửi lên không hợp lệ, vui lòng kiểm tra lại"


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """处理 Pydantic 请求体校验错误，返回友好提示"""
    friendly = _friendly_validation_message(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": friendly},
    )


async def domain_exception_handler(_request: Request, exc: ValueError) -> JSONResponse:
    """未被路由层捕获的业务异常"""
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc)},
    )


async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """兜底异常处理，避免内部错误泄露"""
    logger.error("未处理的异常: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Lỗi máy chủ nội bộ"},
    )
