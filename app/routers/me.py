# =============================================================================
# app/routers/me.py - Self-Service Endpoints
# =============================================================================
# The signed-in user's own profile, subject preferences, learning goals
# and earned achievements. Writes require an active account.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, StaffUser, get_current_profile, get_current_user
from core.models.goal import GoalSet
from core.models.profile import ProfileUpdate, SubjectPreferencesUpdate
from core.services.achievement_service import AchievementService
from core.services.goal_service import GoalService
from core.services.profile_service import ProfileService

router = APIRouter()


# =============================================================================
# Profile
# =============================================================================

@router.get("")
async def get_profile(user: AuthUser = Depends(get_current_user)):
    """Profile row with running totals, streak and XP."""
    return {"user": ProfileService.get_profile(user.id)}


@router.patch("")
async def update_profile(
    request: ProfileUpdate,
    profile: StaffUser = Depends(get_current_profile),
):
    """Change full name, grade or avatar."""
    return {"user": ProfileService.update_profile(profile.id, request)}


# =============================================================================
# Subject Preferences
# =============================================================================

@router.get("/subjects")
async def get_preferred_subjects(user: AuthUser = Depends(get_current_user)):
    """Preferred subjects with published question counts."""
    return {
        "subjectIds": ProfileService.get_subject_preferences(user.id),
        "subjects": ProfileService.preferred_subjects(user.id),
    }


@router.put("/subjects")
async def set_preferred_subjects(
    request: SubjectPreferencesUpdate,
    profile: StaffUser = Depends(get_current_profile),
):
    subject_ids = ProfileService.set_subject_preferences(profile.id, request.subject_ids)
    return {"subjectIds": subject_ids}


# =============================================================================
# Goals and Achievements
# =============================================================================

@router.get("/goals")
async def list_goals(user: AuthUser = Depends(get_current_user)):
    return {"goals": GoalService.list_goals(user.id)}


@router.put("/goals")
async def set_goal(
    request: GoalSet,
    profile: StaffUser = Depends(get_current_profile),
):
    """
    Create or retarget one goal.

    Retargeting resets progress to zero and starts a new period.
    """
    return {"goal": GoalService.set_goal(profile.id, request)}


@router.get("/achievements")
async def list_achievements(user: AuthUser = Depends(get_current_user)):
    """Every achievement, flagged with whether and when the caller earned it."""
    earned = {
        str(ua["achievement_id"]): ua.get("earned_at")
        for ua in AchievementService.list_user_achievements(user.id)
    }
    return {
        "achievements": [
            {**a, "earned": str(a["id"]) in earned, "earned_at": earned.get(str(a["id"]))}
            for a in AchievementService.list_achievements()
        ]
    }
