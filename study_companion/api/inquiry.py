from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
import logging
import uuid
from study_companion.api.deps import get_mongodb_client, http_error
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.models.schemas import InquiryRequest, InquiryResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/inquiries", response_model=InquiryResponse)
async def submit_inquiry(request: InquiryRequest, mongodb_client: MongoDBClient = Depends(get_mongodb_client)):
    """Store feedback or a question for the developers; it starts as pending."""
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="문의 내용을 입력해 주세요.")

    inquiry = {
        "inquiry_id": str(uuid.uuid4()),
        "user_id": request.user_id,
        "user_name": request.user_name or "익명 사용자",
        "content": content,
        "status": "pending",
        "submitted_at": datetime.now(),
    }
    try:
        mongodb_client.save_inquiry(inquiry)
        return InquiryResponse(inquiry_id=inquiry["inquiry_id"], status=inquiry["status"])
    except Exception as e:
        raise http_error(e, "Failed to submit inquiry")
