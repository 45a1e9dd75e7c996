"""Avatar and frame catalogues. Premium and exclusive items are bought with XP."""

from typing import Dict, List, Optional

_DICEBEAR = "https://api.dicebear.com/9.x/bottts-neutral/svg?seed={seed}&backgroundColor={color}"
_GRADIENT = "&backgroundType=gradientLinear&backgroundRotation={rotation}"


def _avatar(avatar_id, name, seed, color, category="default", xp_cost=0, required_level=None, rotation=None):
    url = _DICEBEAR.format(seed=seed, color=color)
    if rotation is not None:
        url += _GRADIENT.format(rotation=rotation)
    return {
        "id": avatar_id,
        "name": name,
        "url": url,
        "category": category,
        "xp_cost": xp_cost,
        "required_level": required_level,
    }


def _frame(frame_id, name, category="default", xp_cost=0, required_level=None):
    return {
        "id": frame_id,
        "name": name,
        "category": category,
        "xp_cost": xp_cost,
        "required_level": required_level,
    }


AVATARS: List[Dict] = [
    _avatar("default-1", "Astronauta", "astronaut", "0ea5e9"),
    _avatar("default-2", "Robô", "robot", "8b5cf6"),
    _avatar("default-3", "Ninja", "ninja", "ef4444"),
    _avatar("default-4", "Mago", "wizard", "a855f7"),
    _avatar("default-5", "Guerreiro", "warrior", "f59e0b"),
    _avatar("default-6", "Cientista", "scientist", "22c55e"),
    _avatar("premium-1", "Fênix", "phoenix", "dc2626", "premium", 500, 5, 45),
    _avatar("premium-2", "Dragão", "dragon", "059669", "premium", 750, 8, 135),
    _avatar("premium-3", "Samurai", "samurai", "7c3aed", "premium", 1000, 10, 90),
    _avatar("premium-4", "Cyber", "cyber", "0891b2", "premium", 1200, 12, 180),
    _avatar("premium-5", "Viking", "viking", "854d0e", "premium", 1500, 15, 45),
    _avatar("premium-6", "Mística", "mystic", "be185d", "premium", 1800, 18, 270),
    _avatar("exclusive-1", "Lendário", "legendary", "eab308", "exclusive", 3000, 25, 45),
    _avatar("exclusive-2", "Imperador", "emperor", "b91c1c", "exclusive", 4000, 30, 135),
    _avatar("exclusive-3", "Divino", "divine", "c084fc", "exclusive", 5000, 35, 90),
    _avatar("exclusive-4", "Eterno", "eternal", "14b8a6", "exclusive", 7500, 50, 180),
]

FRAMES: List[Dict] = [
    _frame("frame-none", "Sem Moldura"),
    _frame("frame-simple", "Simples"),
    _frame("frame-primary", "Primária"),
    _frame("frame-gold", "Dourada", "premium", 300, 3),
    _frame("frame-silver", "Prateada", "premium", 250, 3),
    _frame("frame-bronze", "Bronze", "premium", 200, 2),
    _frame("frame-neon-blue", "Neon Azul", "premium", 400, 5),
    _frame("frame-neon-purple", "Neon Roxo", "premium", 400, 5),
    _frame("frame-neon-green", "Neon Verde", "premium", 400, 5),
    _frame("frame-gradient-sunset", "Pôr do Sol", "premium", 600, 8),
    _frame("frame-gradient-ocean", "Oceano", "premium", 600, 8),
    _frame("frame-rainbow", "Arco-Íris", "exclusive", 1500, 15),
    _frame("frame-fire", "Fogo", "exclusive", 2000, 20),
    _frame("frame-ice", "Gelo", "exclusive", 2000, 20),
    _frame("frame-diamond", "Diamante", "exclusive", 3000, 25),
    _frame("frame-legendary", "Lendária", "exclusive", 5000, 35),
]

CATALOGUES = {"avatar": AVATARS, "frame": FRAMES}

# Profile field holding the unlocked ids and the equipped id for each kind.
UNLOCK_FIELDS = {"avatar": "unlocked_avatars", "frame": "unlocked_frames"}
EQUIP_FIELDS = {"avatar": "current_avatar_id", "frame": "current_frame_id"}


def get_item(kind: str, item_id: str) -> Optional[Dict]:
    for item in CATALOGUES.get(kind, []):
        if item["id"] == item_id:
            return item
    return None


def is_free(item: Dict) -> bool:
    return item["category"] == "default"
