"""
Search Routes

Semantic search over the embedded patent corpus.
"""

from fastapi import APIRouter, Depends, status
from typing import List, Annotated

from .models import SearchRequest, SearchHit
from .dependencies import get_embedder, get_index_config, get_record_store
from ..config import settings
from ..core.errors import InvalidArgument
from ..core.gateway import TextEmbedder
from ..db import RecordStore
from ..embeddings.models import IndexConfig
from ..search.engine import SimilaritySearchEngine

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "/",
    response_model=List[SearchHit],
    summary="Exact cosine-distance semantic search",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    store: Annotated[RecordStore, Depends(get_record_store)],
    embedder: Annotated[TextEmbedder, Depends(get_embedder)],
    config: Annotated[IndexConfig, Depends(get_index_config)],
) -> List[SearchHit]:
    """
    Embed the query once and return the ``k`` closest patents.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - query: Search query string
        - k: Number of top results to return (capped by settings.max_search_k)

    Returns
    -------
    List[SearchHit]
        Ranked list of matching patents, closest first.
    """
    if req.k > settings.max_search_k:
        raise InvalidArgument(f"k must not exceed {settings.max_search_k}")

    # PatentSearchError subclasses are translated by the registered handlers.
    engine = SimilaritySearchEngine(store, embedder, config)
    return await engine.search(req.query, req.k)
