from fastapi import APIRouter, Body, Depends, HTTPException, status

from routes.deps import get_evaluator
from utils.evaluator import SubmissionEvaluator
from utils.progress import InvalidName, ProfileNotFound

router = APIRouter()


def collection_payload(evaluator: SubmissionEvaluator) -> dict:
    collection = evaluator.store.collection
    return {
        "activeProfileId": collection.active_profile_id,
        "profiles": [
            {
                "id": profile.id,
                "name": profile.name,
                "cursor": profile.progress.cursor,
                "known": len(profile.progress.known_units),
                "streak": profile.progress.summary.streak,
            }
            for profile in collection.profiles
        ],
    }


@router.get("")
async def list_profiles(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """All profiles plus the active profile id."""
    return collection_payload(evaluator)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_profile(
    name: str = Body("", embed=True),
    evaluator: SubmissionEvaluator = Depends(get_evaluator),
):
    """Create a profile, make it active and resume it at the start."""
    try:
        profile = evaluator.store.create_profile(name)
    except InvalidName:
        raise HTTPException(status_code=400, detail="Profile name is required")
    evaluator.activate_profile(profile.id)
    return collection_payload(evaluator)


@router.post("/{profile_id}/rename")
async def rename_profile(
    profile_id: str,
    name: str = Body("", embed=True),
    evaluator: SubmissionEvaluator = Depends(get_evaluator),
):
    try:
        evaluator.store.rename_profile(profile_id, name)
    except InvalidName:
        raise HTTPException(status_code=400, detail="Profile name is required")
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")
    return collection_payload(evaluator)


@router.post("/{profile_id}/activate")
async def activate_profile(profile_id: str, evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Switch the active profile; the cursor resumes at the first unknown exercise."""
    if evaluator.store.collection.get(profile_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    evaluator.activate_profile(profile_id)
    return collection_payload(evaluator)


@router.delete("/{profile_id}")
async def delete_profile(profile_id: str, evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Delete a profile. Removing the active one activates the next, or a fresh default."""
    previous_active = evaluator.profile_id
    try:
        evaluator.store.delete_profile(profile_id)
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")
    if profile_id == previous_active:
        evaluator.activate_profile(evaluator.profile_id)
    return collection_payload(evaluator)
