"""
目标物体词库与选词策略。

词库中只存物体名，"Draw a"/"Draw an" 前缀在发送提示时自动补上。
"""

import random
from typing import Optional, Sequence

from ai_pictionary.shared.protocols import generate_prompt, target_from_prompt

OBJECTS = (
    # Animals
    "cat", "dog", "bird", "fish", "rabbit", "mouse", "elephant", "lion", "tiger", "bear",
    "horse", "cow", "pig", "sheep", "duck", "chicken", "owl", "eagle", "butterfly", "bee",
    "spider", "snake", "turtle", "frog", "whale", "dolphin", "shark", "octopus", "crab", "lobster",
    # Vehicles
    "car", "bicycle", "motorcycle", "bus", "truck", "train", "airplane", "helicopter", "boat", "ship",
    "submarine", "rocket", "tractor", "scooter", "skateboard",
    # Buildings & Structures
    "house", "building", "castle", "bridge", "tower", "church", "school", "hospital", "library", "museum",
    # Nature
    "tree", "flower", "sun", "star", "moon", "cloud", "rainbow", "mountain", "river", "ocean",
    "lake", "forest", "grass", "leaf", "rock", "cactus", "volcano", "island",
    # Food & Drinks
    "apple", "banana", "orange", "strawberry", "grape", "watermelon", "pizza", "hamburger", "cake", "cookie",
    "ice cream", "coffee", "tea", "cup", "bottle", "bowl", "plate", "fork", "knife", "spoon",
    # Household Items
    "chair", "table", "bed", "lamp", "clock", "phone", "computer", "television", "refrigerator", "microwave",
    "book", "pen", "pencil", "eraser", "notebook", "backpack", "umbrella", "key", "lock",
    # Clothing
    "hat", "shirt", "dress", "shoe", "sock", "glove", "scarf", "jacket", "pants", "skirt",
    # Sports & Games
    "ball", "basketball", "football", "soccer ball", "tennis racket", "baseball bat", "frisbee", "kite", "dice",
    "chess piece",
    # Musical Instruments
    "guitar", "piano", "violin", "drum", "trumpet", "flute", "saxophone",
    # Tools
    "hammer", "saw", "screwdriver", "wrench", "pliers", "drill", "ladder", "toolbox",
    # Other Common Objects
    "camera", "glasses", "watch", "ring", "necklace", "wallet", "purse", "mirror", "brush", "comb",
    "toothbrush", "soap", "towel", "pillow", "blanket", "toy", "doll", "teddy bear", "robot", "alien",
    "ghost", "witch", "wizard", "knight", "princess", "crown", "sword", "shield", "arrow", "bow",
)

class RandomTargetSelector:
    """均匀随机选词，允许与上一局重复；可注入 random.Random 以便测试复现。"""

    def __init__(self, objects: Sequence[str] = OBJECTS, rng: Optional[random.Random] = None):
        if not objects:
            raise ValueError("target catalog must not be empty")
        self.objects = tuple(objects)
        self.rng = rng or random.Random()

    def choose(self) -> str:
        return self.rng.choice(self.objects)
