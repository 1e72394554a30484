"""Keyword rule tables for category matching, one per catalog vertical."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class KeywordRule:
    category_name: str
    keywords: Tuple[str, ...]
    exclude_keywords: Tuple[str, ...] = ()


def _rule(name: str, keywords: Sequence[str], exclude: Sequence[str] = ()) -> KeywordRule:
    return KeywordRule(name, tuple(keywords), tuple(exclude))


FURNITURE_RULES: List[KeywordRule] = [
    _rule(
        "Sofas",
        ["sofa", "couch", "sectional", "loveseat", "settee", "divan", "futon sofa", "sleeper sofa", "chesterfield"],
        ["sofa table", "sofa cover", "sofa leg"],
    ),
    _rule(
        "Chairs",
        ["chair", "armchair", "recliner", "rocker", "lounge chair", "accent chair", "dining chair",
         "office chair", "gaming chair", "rocking chair"],
        ["chairlift", "wheelchair"],
    ),
    _rule(
        "Tables",
        ["table", "dining table", "coffee table", "side table", "end table", "console table",
         "nightstand", "bedside table", "accent table"],
        ["table lamp", "tablecloth", "table runner"],
    ),
    _rule(
        "Beds",
        ["bed", "bed frame", "platform bed", "bunk bed", "daybed", "trundle bed", "murphy bed",
         "canopy bed", "sleigh bed", "poster bed"],
        ["bedding", "bed sheet", "bed cover", "flower bed", "pet bed"],
    ),
    _rule(
        "Cabinets",
        ["cabinet", "cupboard", "sideboard", "buffet cabinet", "display cabinet", "china cabinet",
         "bar cabinet", "storage cabinet", "file cabinet"],
        ["cabinet hardware", "cabinet knob"],
    ),
    _rule("Wardrobes", ["wardrobe", "armoire", "closet", "clothes cabinet", "garment rack"]),
    _rule(
        "Storage Units",
        ["storage unit", "storage box", "storage bin", "organizer", "storage rack", "cube storage",
         "storage basket"],
    ),
    _rule(
        "TV Units",
        ["tv stand", "tv unit", "tv cabinet", "entertainment center", "media console", "tv table",
         "media stand", "entertainment unit"],
    ),
    _rule(
        "Shelving",
        ["shelf", "shelving", "bookshelf", "bookcase", "wall shelf", "floating shelf", "ladder shelf",
         "corner shelf", "display shelf"],
    ),
    _rule(
        "Desks",
        ["desk", "writing desk", "computer desk", "study desk", "home office desk", "executive desk",
         "standing desk", "work desk", "l-shaped desk"],
        ["desk lamp", "desk pad", "desk organizer", "desk chair"],
    ),
    _rule(
        "Benches",
        ["bench", "entryway bench", "storage bench", "garden bench", "dining bench", "window bench",
         "shoe bench"],
        ["bench press", "weight bench", "workout bench"],
    ),
    _rule(
        "Stools",
        ["stool", "bar stool", "counter stool", "kitchen stool", "vanity stool", "step stool", "saddle stool"],
    ),
    _rule("Ottomans", ["ottoman", "footstool", "pouf", "footrest", "tufted ottoman", "storage ottoman"]),
    _rule(
        "Mattresses",
        ["mattress", "memory foam mattress", "spring mattress", "hybrid mattress", "latex mattress",
         "mattress topper", "foam mattress"],
        ["mattress cover", "mattress protector", "mattress pad"],
    ),
    _rule(
        "Fans",
        ["fan", "ceiling fan", "pedestal fan", "tower fan", "box fan", "desk fan", "standing fan",
         "floor fan", "oscillating fan", "bladeless fan"],
        ["fan blade", "fan cover"],
    ),
    _rule(
        "Appliances",
        ["appliance", "blender", "mixer", "toaster", "microwave", "air fryer", "coffee maker", "kettle",
         "juicer", "food processor", "vacuum", "iron", "heater", "humidifier", "dehumidifier",
         "air purifier"],
    ),
    _rule(
        "Gym Equipment",
        ["gym equipment", "dumbbell", "barbell", "kettlebell", "weight plate", "resistance band",
         "pull up bar", "squat rack", "power rack", "weight bench", "bench press"],
    ),
    _rule(
        "Fitness Machines",
        ["treadmill", "elliptical", "exercise bike", "stationary bike", "rowing machine", "stair climber",
         "cross trainer", "spin bike", "recumbent bike", "home gym"],
    ),
    _rule(
        "Exercise Accessories",
        ["yoga mat", "exercise mat", "resistance band", "jump rope", "foam roller", "exercise ball",
         "ab wheel", "grip strengthener", "ankle weights", "wrist weights", "workout gloves",
         "fitness tracker"],
    ),
    _rule(
        "Outdoor Furniture",
        ["patio furniture", "outdoor furniture", "garden furniture", "patio set", "outdoor table",
         "outdoor chair", "patio chair", "garden bench", "outdoor lounge", "deck furniture", "poolside"],
    ),
    _rule(
        "Tents",
        ["tent", "camping tent", "pop up tent", "dome tent", "cabin tent", "backpacking tent",
         "family tent", "beach tent", "canopy tent"],
    ),
    _rule(
        "Gazebos",
        ["gazebo", "pergola", "pavilion", "outdoor canopy", "garden gazebo", "patio gazebo", "pop up gazebo"],
    ),
    _rule(
        "Camping Equipment",
        ["camping", "sleeping bag", "camp stove", "camping lantern", "camping chair", "cooler",
         "camping gear", "camp cot", "camping cookware", "headlamp"],
    ),
    _rule(
        "Travel Gear",
        ["luggage", "suitcase", "travel bag", "backpack", "duffel bag", "carry on", "travel pillow",
         "packing cubes", "travel organizer", "passport holder", "travel wallet"],
    ),
    _rule(
        "Kids Furniture",
        ["kids furniture", "children furniture", "toddler bed", "kids desk", "kids chair", "bunk bed",
         "loft bed", "kids bookshelf", "toy storage", "kids table", "nursery furniture", "crib",
         "baby crib", "changing table"],
    ),
    _rule(
        "Ride-On Toys",
        ["ride on", "ride-on", "electric car", "kids car", "pedal car", "power wheels", "kids motorcycle",
         "kids scooter", "balance bike", "tricycle", "kids atv"],
    ),
    _rule(
        "Playsets",
        ["playset", "play set", "swing set", "playground", "climbing frame", "jungle gym",
         "play structure", "outdoor playset", "backyard playset"],
    ),
    _rule(
        "Swings",
        ["swing", "baby swing", "porch swing", "tree swing", "hammock swing", "swing chair", "kids swing",
         "garden swing", "nest swing"],
        ["swing set"],
    ),
    _rule(
        "Toys",
        ["toy", "toys", "action figure", "doll", "stuffed animal", "plush", "board game", "puzzle",
         "building blocks", "lego", "remote control", "rc car", "drone toy"],
        ["toy storage", "toy box", "toy chest"],
    ),
    _rule(
        "Pet Furniture",
        ["pet furniture", "dog bed", "cat bed", "pet bed", "dog couch", "cat tree", "pet sofa",
         "dog crate furniture", "pet stairs", "dog ramp"],
    ),
    _rule(
        "Pet Houses",
        ["pet house", "dog house", "cat house", "pet shelter", "outdoor dog house", "insulated dog house",
         "dog kennel", "cat condo"],
    ),
    _rule(
        "Pet Enclosures",
        ["pet enclosure", "dog pen", "puppy playpen", "cat enclosure", "rabbit hutch", "chicken coop",
         "pet gate", "dog gate", "pet fence", "dog run"],
    ),
    _rule(
        "Pet Accessories",
        ["pet accessory", "dog bowl", "cat bowl", "pet feeder", "pet fountain", "dog leash", "cat collar",
         "pet carrier", "dog crate", "pet toy", "dog toy", "cat toy", "pet grooming"],
    ),
]

FASHION_RULES: List[KeywordRule] = [
    _rule(
        "Designer Clothing",
        ["clothing", "dress", "shirt", "blouse", "jacket", "coat", "sweater", "cardigan", "pants",
         "trousers", "jeans", "skirt", "suit", "blazer", "vest", "top", "t-shirt", "hoodie", "polo",
         "knitwear", "outerwear", "designer"],
        ["shoe", "bag", "watch", "jewelry", "perfume", "fragrance"],
    ),
    _rule(
        "Luxury Footwear",
        ["shoe", "shoes", "sneaker", "sneakers", "boot", "boots", "heel", "heels", "loafer", "loafers",
         "sandal", "sandals", "slipper", "slippers", "oxford", "pump", "pumps", "mule", "mules",
         "footwear", "trainer", "trainers", "espadrille"],
    ),
    _rule(
        "Premium Handbags & Wallets",
        ["handbag", "bag", "purse", "tote", "clutch", "wallet", "satchel", "crossbody", "shoulder bag",
         "backpack", "briefcase", "messenger", "pouch", "card holder", "cardholder", "coin purse",
         "travel bag"],
        ["sleeping bag", "tea bag", "bag charm"],
    ),
    _rule(
        "Fashion Accessories",
        ["belt", "scarf", "sunglasses", "hat", "cap", "tie", "bow tie", "glove", "gloves", "umbrella",
         "keychain", "hair accessory", "headband", "beanie", "beret", "fedora", "bandana", "shawl",
         "wrap", "accessory", "accessories"],
        ["bag", "watch", "jewelry", "earring", "necklace", "bracelet", "ring", "perfume"],
    ),
    _rule(
        "Luxury Watches",
        ["watch", "watches", "timepiece", "chronograph", "wristwatch", "smartwatch", "automatic watch",
         "quartz watch", "dive watch", "sports watch", "dress watch"],
        ["watch strap", "watch band", "watch case", "apple watch"],
    ),
    _rule(
        "Jewelry",
        ["jewelry", "jewellery", "necklace", "bracelet", "ring", "earring", "earrings", "pendant",
         "charm", "brooch", "cufflink", "cufflinks", "anklet", "bangle", "chain", "diamond", "gold",
         "silver", "pearl", "gemstone"],
        ["jewelry box", "jewelry case"],
    ),
    _rule(
        "Beauty & Cosmetics",
        ["makeup", "cosmetic", "cosmetics", "lipstick", "foundation", "mascara", "eyeshadow", "blush",
         "concealer", "primer", "skincare", "serum", "moisturizer", "cleanser", "toner", "cream",
         "lotion", "beauty", "nail polish", "eyeliner"],
        ["beauty case", "fragrance", "perfume", "cologne"],
    ),
    _rule(
        "Fragrances / Perfumes",
        ["perfume", "fragrance", "cologne", "eau de toilette", "eau de parfum", "scent", "body spray",
         "body mist", "aftershave", "parfum", "edp", "edt"],
        ["home fragrance", "candle", "diffuser"],
    ),
]


def rules_for_supplier_type(supplier_type: str) -> List[KeywordRule]:
    """Rule table for a supplier type; unknown types match against both."""
    if supplier_type == "gigab2b":
        return FURNITURE_RULES
    if supplier_type == "shopify":
        return FASHION_RULES
    return FURNITURE_RULES + FASHION_RULES
