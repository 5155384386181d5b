"""AI-assisted feature routes."""

from fastapi import APIRouter, Depends

from ai_gateway import AIGateway
from deps import get_ai_gateway
from schemas import (
    AnalysisResponse,
    AnalyzeContentRequest,
    SimilarPostsResponse,
    SimilarQuestionsResponse,
    SmartRepliesResponse,
    SmartReplyRequest,
    SuggestionsResponse,
    SummaryResponse,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("/search-suggestions", response_model=SuggestionsResponse)
async def search_suggestions(q: str = "", gateway: AIGateway = Depends(get_ai_gateway)):
    return {"suggestions": await gateway.search_suggestions(q)}


@router.get("/similar", response_model=SimilarQuestionsResponse)
async def similar_questions(q: str = "", gateway: AIGateway = Depends(get_ai_gateway)):
    return {"similarQuestions": await gateway.similar_questions(q)}


@router.get("/similar/{post_id}", response_model=SimilarPostsResponse)
async def similar_posts(post_id: str, gateway: AIGateway = Depends(get_ai_gateway)):
    return {"similarPosts": await gateway.similar_posts(post_id)}


@router.get("/summarize/{post_id}", response_model=SummaryResponse)
async def summarize_discussion(post_id: str, gateway: AIGateway = Depends(get_ai_gateway)):
    return {"summary": await gateway.summarize_discussion(post_id)}


@router.post("/smart-replies", response_model=SmartRepliesResponse)
async def smart_replies(body: SmartReplyRequest, gateway: AIGateway = Depends(get_ai_gateway)):
    return {"replies": await gateway.smart_replies(body.post_id, body.context)}


@router.post("/analyze-content", response_model=AnalysisResponse)
async def analyze_content(body: AnalyzeContentRequest, gateway: AIGateway = Depends(get_ai_gateway)):
    return {"analysis": await gateway.analyze_content(body.content)}
