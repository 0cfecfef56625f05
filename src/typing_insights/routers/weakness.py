from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status

from ..cache import TTLCache
from ..content import ContentGenerator
from ..dependencies import get_cache, get_content_generator, get_profile_store, get_word_supply
from ..schemas import StoredProfile, WordsResponse
from ..storage import InMemoryProfileStore
from ..words import DIFFICULTIES, LocalWordSupply

weakness_router = APIRouter(tags=["practice"])


@weakness_router.get(
    "/weakness/{user_id}",
    summary="Get a user's weakness profile",
    response_model=StoredProfile,
    status_code=status.HTTP_200_OK,
)
# PUBLIC_INTERFACE
def get_weakness_profile(
    user_id: str,
    profiles: InMemoryProfileStore = Depends(get_profile_store),
) -> StoredProfile:
    """Retrieve the stored weakness profile.

    Raises:
        HTTPException 404 if no profile has been computed for the user.
    """
    record = profiles.get_record(user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="weakness profile not found")
    return record


@weakness_router.get(
    "/content/adaptive",
    summary="Generate practice words targeting a user's weaknesses",
    response_model=WordsResponse,
    status_code=status.HTTP_200_OK,
)
# PUBLIC_INTERFACE
def adaptive_content(
    count: int = Query(50, ge=1, le=1000, description="Number of words to return."),
    user_id: Optional[str] = Query(None, alias="userId", description="User to adapt to."),
    profiles: InMemoryProfileStore = Depends(get_profile_store),
    generator: ContentGenerator = Depends(get_content_generator),
    profile_cache: TTLCache = Depends(get_cache),
) -> WordsResponse:
    """Return ``count`` practice words; users without a profile get generic words."""
    profile = None
    if user_id:
        profile = profile_cache.get_or_load(
            "weakness_profile", user_id, lambda: profiles.get(user_id)
        )
    words = generator.generate(count, profile)
    return WordsResponse(words=words, count=len(words), adaptive=bool(generator.focus_pools(profile)))


@weakness_router.get(
    "/words",
    summary="Get test words for a difficulty",
    response_model=WordsResponse,
    status_code=status.HTTP_200_OK,
)
# PUBLIC_INTERFACE
def supply_words(
    count: int = Query(50, ge=1, le=1000, description="Number of words to return."),
    difficulty: str = Query("medium", description="easy, medium, hard or nightmare."),
    supply: LocalWordSupply = Depends(get_word_supply),
) -> WordsResponse:
    """Serve word batches to test engines (the word-supply collaborator)."""
    if difficulty not in DIFFICULTIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"difficulty must be one of {', '.join(DIFFICULTIES)}",
        )
    words = supply.request_words(count, difficulty)
    return WordsResponse(words=words, count=len(words))
