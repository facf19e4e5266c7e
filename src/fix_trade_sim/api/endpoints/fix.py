"""FIX toolbox endpoints.

Stateless helpers the UI uses to inspect and hand-craft messages:
framing a tag mapping, decoding a pasted wire string, validating tags and
switching between the SOH and pipe forms.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from ...domain.fix import codec
from ...domain.fix.message import DISPLAY_DELIMITER, SOH, FixMessage
from ...domain.validation.fix_validator import validate_fix_message
from ...infrastructure.config.models import FixConfig
from ..dependencies import get_fix_config
from ..models import (
    ApiResponse,
    DecodeRequest,
    DisplayRequest,
    EncodeRequest,
    ValidateRequest,
)

router = APIRouter(prefix="/fix", tags=["fix"])


def _request_id() -> str:
    return f"req_{datetime.now().timestamp()}"


@router.post("/encode", response_model=ApiResponse)
async def encode_message(
    request: EncodeRequest,
    fix_config: FixConfig = Depends(get_fix_config),
):
    """Frame a tag mapping and report whether it is valid.

    The message is returned even when validation fails so the user can
    see what was produced.
    """
    raw = codec.encode(
        request.msg_type,
        request.tags,
        request.begin_string or fix_config.begin_string,
    )
    message = FixMessage(
        msg_type=request.msg_type, tags=codec.decode(raw), raw=raw
    )
    validation = validate_fix_message(request.msg_type, request.tags)

    data = message.to_dict()
    data["validation"] = validation.to_dict()
    return ApiResponse(success=True, request_id=_request_id(), data=data)


@router.post("/decode", response_model=ApiResponse)
async def decode_message(
    request: DecodeRequest,
    fix_config: FixConfig = Depends(get_fix_config),
):
    """Decode a wire string and check it.

    Notes
    -----
    Decoding never fails. A missing or unsupported tag 35 falls back to
    the configured type for ``msg_type`` and ``declared_msg_type`` shows
    what the message actually carried. Validation uses the declared code
    whenever tag 35 is present, so an unsupported type gets no
    required-tag errors.
    """
    raw = request.raw
    if SOH not in raw and DISPLAY_DELIMITER in raw:
        raw = codec.from_display_string(raw)

    message = codec.parse_message(raw, fallback=fix_config.fallback_msg_type)
    declared = message.get(35)
    validation = validate_fix_message(
        message.msg_type if declared is None else declared, message.tags
    )

    data = message.to_dict()
    data["declared_msg_type"] = declared
    data["checksum_valid"] = codec.verify_checksum(raw)
    data["validation"] = validation.to_dict()
    return ApiResponse(success=True, request_id=_request_id(), data=data)


@router.post("/validate", response_model=ApiResponse)
async def validate_message(request: ValidateRequest):
    """Validate a tag mapping against its declared message type."""
    validation = validate_fix_message(request.msg_type, request.tags)
    return ApiResponse(
        success=True, request_id=_request_id(), data=validation.to_dict()
    )


@router.post("/display", response_model=ApiResponse)
async def convert_display(request: DisplayRequest):
    """Swap SOH delimiters for pipes, or back."""
    if request.to_display:
        converted = codec.to_display_string(request.raw)
    else:
        converted = codec.from_display_string(request.raw)
    return ApiResponse(
        success=True, request_id=_request_id(), data={"raw": converted}
    )
