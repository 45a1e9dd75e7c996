"""Achievement catalogue and the rules that decide when one is earned."""

from typing import Any, Dict, List, Optional

ACHIEVEMENT_XP = {
    "common": 50,
    "rare": 150,
    "epic": 500,
    "legendary": 1000,
}

ACHIEVEMENTS: List[Dict[str, str]] = [
    # common
    {"id": "welcome", "name": "Bem-vindo", "description": "Criou uma conta na plataforma", "icon": "star", "rarity": "common"},
    {"id": "first-post", "name": "Primeira Voz", "description": "Publique seu primeiro post", "icon": "message-square", "rarity": "common"},
    {"id": "first-like", "name": "Primeiro Like", "description": "Dê seu primeiro like em um post", "icon": "heart", "rarity": "common"},
    {"id": "first-comment", "name": "Primeiro Comentário", "description": "Comente em um post pela primeira vez", "icon": "message-circle", "rarity": "common"},
    {"id": "first-purchase", "name": "Primeira Compra", "description": "Resgate seu primeiro produto", "icon": "shopping-bag", "rarity": "common"},
    # rare
    {"id": "streak-7", "name": "Em Chamas", "description": "Mantenha um streak de 7 dias", "icon": "flame", "rarity": "rare"},
    {"id": "social-butterfly", "name": "Borboleta Social", "description": "Envie 10 mensagens privadas", "icon": "send", "rarity": "rare"},
    {"id": "community-star", "name": "Estrela da Comunidade", "description": "Publique 10 posts", "icon": "star", "rarity": "rare"},
    {"id": "level-5", "name": "Subindo de Nível", "description": "Alcance o nível 5", "icon": "trending-up", "rarity": "rare"},
    {"id": "missions-complete", "name": "Missões do Dia", "description": "Complete todas as missões diárias", "icon": "check-circle", "rarity": "rare"},
    # epic
    {"id": "streak-30", "name": "Dedicação Total", "description": "Mantenha um streak de 30 dias", "icon": "flame", "rarity": "epic"},
    {"id": "level-10", "name": "Veterano", "description": "Alcance o nível 10", "icon": "award", "rarity": "epic"},
    {"id": "influencer", "name": "Influenciador", "description": "Receba 50 likes nos seus posts", "icon": "heart", "rarity": "epic"},
    {"id": "referral-master", "name": "Recrutador", "description": "Convide 5 amigos para a plataforma", "icon": "users", "rarity": "epic"},
    {"id": "collector", "name": "Colecionador", "description": "Resgate 5 produtos", "icon": "package", "rarity": "epic"},
    # legendary
    {"id": "top-10", "name": "Campeão", "description": "Alcance o top 10 do ranking", "icon": "trophy", "rarity": "legendary"},
    {"id": "top-1", "name": "Lenda", "description": "Alcance o 1º lugar do ranking", "icon": "crown", "rarity": "legendary"},
    {"id": "level-20", "name": "Mestre", "description": "Alcance o nível 20", "icon": "zap", "rarity": "legendary"},
    {"id": "streak-100", "name": "Imortal", "description": "Mantenha um streak de 100 dias", "icon": "flame", "rarity": "legendary"},
]

_BY_ID = {a["id"]: a for a in ACHIEVEMENTS}

# (profile field, threshold, achievement id)
_PROFILE_RULES = [
    ("streak_days", 7, "streak-7"),
    ("streak_days", 30, "streak-30"),
    ("streak_days", 100, "streak-100"),
    ("level", 5, "level-5"),
    ("level", 10, "level-10"),
    ("level", 20, "level-20"),
]

# (context counter, threshold, achievement id)
_COUNTER_RULES = [
    ("post_count", 10, "community-star"),
    ("purchase_count", 5, "collector"),
    ("message_count", 10, "social-butterfly"),
    ("received_likes", 50, "influencer"),
    ("referral_count", 5, "referral-master"),
]

# (action, counter that must equal 1, achievement id)
_FIRST_ACTION_RULES = [
    ("post", "post_count", "first-post"),
    ("like", "like_count", "first-like"),
    ("comment", "comment_count", "first-comment"),
    ("purchase", "purchase_count", "first-purchase"),
]


def get_achievement(achievement_id: str) -> Optional[Dict[str, str]]:
    return _BY_ID.get(achievement_id)


def achievement_xp(achievement_id: str) -> int:
    achievement = _BY_ID.get(achievement_id)
    return ACHIEVEMENT_XP.get(achievement["rarity"], 50) if achievement else 0


def check_achievements(profile: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Ids of achievements the profile has earned but not yet unlocked.

    Args:
        profile: User document (streak_days, level, achievements).
        context: Optional action counters: action, post_count, like_count,
            comment_count, purchase_count, message_count, received_likes,
            referral_count, ranking_position.

    Returns:
        Newly earned achievement ids in catalogue order.
    """
    owned = set(profile.get("achievements") or [])
    earned = set()

    for field, threshold, achievement_id in _PROFILE_RULES:
        if (profile.get(field) or 0) >= threshold:
            earned.add(achievement_id)

    if context:
        action = context.get("action")
        for rule_action, counter, achievement_id in _FIRST_ACTION_RULES:
            if action == rule_action and context.get(counter) == 1:
                earned.add(achievement_id)
        for counter, threshold, achievement_id in _COUNTER_RULES:
            if (context.get(counter) or 0) >= threshold:
                earned.add(achievement_id)
        if action == "mission_complete":
            earned.add("missions-complete")
        position = context.get("ranking_position")
        if position:
            if position <= 10:
                earned.add("top-10")
            if position == 1:
                earned.add("top-1")

    return [a["id"] for a in ACHIEVEMENTS if a["id"] in earned and a["id"] not in owned]
