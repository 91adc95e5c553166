import random
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from models.store import RecordStore, generate_id, utc_timestamp
from utils.clock import days_ago, today as clock_today

CUSTOMERS = [
    "ร้านส้มตำป้าแก้ว", "ร้านข้าวแกงลุงชาย", "ตลาดสดบางแค", "ร้านหมูกระทะเฮีย",
    "ร้านอาหารครัวคุณนาย", "โรงแรมริเวอร์ไซด์", "ร้านข้าวมันไก่แม่ทอง", "ร้านก๋วยเตี๋ยวเจ๊หมวย",
    "ร้านบุฟเฟ่ต์ชาบู", "ภัตตาคารมังกรทอง", "ร้านสเต็กลุงจอห์น", "ร้านอาหารบ้านสวน",
    "คุณวิชัย (ขายปลีก)",
]

SUPPLIERS = [
    "ฟาร์มเฮียชัย", "ซีพีเอฟ สาขา 1", "ตลาดไท", "เบทาโกร สาขาหลัก",
    "บริษัท สหฟาร์ม จำกัด", "ฟาร์มหมูเจริญ",
]

# name, min kg, max kg, min cost, max cost
SALE_PRODUCTS = [
    ("เนื้อวัวสันใน", 1, 10, 350, 3500),
    ("เนื้อวัวสันนอก", 2, 15, 500, 4500),
    ("เนื้อวัวติดมัน", 3, 20, 600, 4000),
    ("ซี่โครงหมู", 2, 12, 200, 1800),
    ("สันคอหมู", 1, 8, 150, 1200),
    ("หมูสามชั้น", 2, 15, 250, 2250),
    ("อกไก่", 1, 10, 80, 900),
    ("น่องไก่", 2, 12, 100, 720),
    ("ปีกไก่", 1, 8, 60, 560),
    ("เนื้อแกะ", 1, 5, 400, 2500),
    ("กระดูกหมูอ่อน", 3, 10, 200, 800),
    ("เนื้อบด", 1, 8, 120, 1200),
]

# name, min kg, max kg, cost per kg
PURCHASE_PRODUCTS = [
    ("เนื้อวัวสันใน", 10, 50, 350),
    ("เนื้อวัวสันนอก", 15, 60, 500),
    ("เนื้อวัวติดมัน", 20, 80, 600),
    ("ซี่โครงหมู", 10, 40, 200),
    ("สันคอหมู", 15, 50, 150),
    ("หมูสามชั้น", 20, 60, 250),
    ("อกไก่", 20, 100, 80),
    ("น่องไก่", 15, 80, 100),
]

SEED_DAYS = 10

def _created_at(day: date, hour: int) -> str:
    return utc_timestamp(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))

def _margin(rng: random.Random) -> float:
    """Usually a 5-20% markup; about one sale in eight is a small loss."""
    if rng.random() < 0.12:
        return -(rng.random() * 0.03)
    return 0.05 + rng.random() * 0.15

def demo_sales(today: date, rng: random.Random) -> List[Dict]:
    sales = []
    for offset in range(SEED_DAYS):
        day = days_ago(offset, today)
        for j in range(rng.randint(3, 8)):
            name, min_w, max_w, min_cost, max_cost = rng.choice(SALE_PRODUCTS)
            cost = round(min_cost + rng.random() * (max_cost - min_cost))
            selling = round(cost * (1 + _margin(rng)))
            sales.append({
                "id": generate_id(),
                "customerName": rng.choice(CUSTOMERS),
                "productName": name,
                "weight": round(min_w + rng.random() * (max_w - min_w), 1),
                "costPrice": cost,
                "sellingPrice": selling,
                "profit": selling - cost,
                "saleDate": day.isoformat(),
                "createdAt": _created_at(day, 9 + j),
            })
    return sales

def demo_purchases(today: date, rng: random.Random) -> List[Dict]:
    purchases = []
    for offset in range(SEED_DAYS):
        day = days_ago(offset, today)
        for j in range(rng.randint(1, 4)):
            name, min_w, max_w, per_kg = rng.choice(PURCHASE_PRODUCTS)
            weight = round(min_w + rng.random() * (max_w - min_w), 1)
            purchases.append({
                "id": generate_id(),
                "supplierName": rng.choice(SUPPLIERS),
                "productName": name,
                "weight": weight,
                "costPrice": round(weight * per_kg),
                "receiveDate": day.isoformat(),
                "createdAt": _created_at(day, 8 + j),
            })
    return purchases

def seed_demo_data(store: RecordStore, today: Optional[date] = None,
                   rng: Optional[random.Random] = None) -> Dict:
    """Fill never-written collections with ten days of demo records.

    Safe to call repeatedly: collections that already exist are left alone.
    """
    today = today or clock_today()
    rng = rng or random.Random()
    summary = {"sales": 0, "purchases": 0}
    if not store.is_initialized("sales"):
        sales = demo_sales(today, rng)
        store.seed("sales", sales)
        summary["sales"] = len(sales)
    if not store.is_initialized("purchases"):
        purchases = demo_purchases(today, rng)
        store.seed("purchases", purchases)
        summary["purchases"] = len(purchases)
    return summary
