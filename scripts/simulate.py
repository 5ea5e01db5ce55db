"""
Load Simulation Script

Simulates many customers using the API at once: each one registers,
reads the menu, places an order and, every other customer, books a table
or a delivery.
Run from project root: python scripts/simulate.py --admin-email ... --admin-password ...
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Optional

import httpx

# Configuration
API_BASE_URL = "http://localhost:5000/api"
TOTAL_CUSTOMERS = 50

FIRST_NAMES = ["Jean", "Marie", "Luc", "Sophie", "Hugo", "Emma", "Louis", "Chloé", "Paul", "Léa"]
LAST_NAMES = ["Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit", "Durand"]
SEED_MENU = [
    {"name": "Soupe à l'oignon", "description": "Gratinée", "price": 7.5, "category": "Entrées"},
    {"name": "Salade niçoise", "description": "Thon, olives, oeuf", "price": 9.0, "category": "Entrées"},
    {"name": "Boeuf bourguignon", "description": "Mijoté au vin rouge", "price": 18.5, "category": "Plats"},
    {"name": "Ratatouille", "description": "Légumes du soleil", "price": 14.0, "category": "Plats"},
    {"name": "Crème brûlée", "description": "Vanille bourbon", "price": 6.5, "category": "Desserts"},
    {"name": "Citronnade", "description": "Maison", "price": 3.5, "category": "Boissons"},
]


def generate_customer() -> dict[str, str]:
    """Generate random customer details with a unique email."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "email": f"{first.lower()}.{last.lower()}.{uuid.uuid4().hex[:8]}@example.com",
        "password": "secret123",
        "phone": f"06{random.randint(10000000, 99999999)}",
    }


def generate_order(menu: list[dict]) -> dict[str, Any]:
    lines = random.sample(menu, k=random.randint(1, min(3, len(menu))))
    items = [{"menuItem": item["id"], "quantity": random.randint(1, 3)} for item in lines]
    prices = {item["id"]: item["price"] for item in menu}
    total = sum(prices[line["menuItem"]] * line["quantity"] for line in items)
    return {"items": items, "totalAmount": round(total, 2)}


def generate_reservation(customer: dict[str, str], menu: list[dict]) -> dict[str, Any]:
    day = date.today() + timedelta(days=random.randint(0, 14))
    payload = {
        "name": customer["name"],
        "email": customer["email"],
        "phone": customer["phone"],
        "date": day.isoformat(),
        "time": random.choice(["12:00", "12:30", "19:00", "19:30", "20:30"]),
        "totalAmount": 0,
    }
    if random.random() < 0.5:
        payload.update(type="surPlace", numberOfPeople=random.randint(1, 8))
    else:
        dish = random.choice(menu)
        quantity = random.randint(1, 4)
        payload.update(
            type="livraison",
            address=f"{random.randint(1, 120)} rue de la Paix",
            dishes=[{"itemRef": dish["id"], "name": dish["name"], "price": dish["price"], "quantity": quantity}],
            totalAmount=round(dish["price"] * quantity, 2),
        )
    return payload


# =============================================================================
# CUSTOMER FLOW
# =============================================================================

async def run_customer(
    client: httpx.AsyncClient,
    num: int,
    menu: list[dict],
) -> dict[str, Any]:
    """Register, order and maybe book, timing the whole flow."""
    customer = generate_customer()
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/auth/register", json={
            "name": customer["name"],
            "email": customer["email"],
            "password": customer["password"],
        })
        response.raise_for_status()
        headers = {"x-auth-token": response.json()["token"]}

        order = generate_order(menu)
        response = await client.post(f"{API_BASE_URL}/orders", json=order, headers=headers)
        response.raise_for_status()
        order_id = response.json()["id"]

        reservation_id = None
        if num % 2 == 0:
            response = await client.post(
                f"{API_BASE_URL}/reservations",
                json=generate_reservation(customer, menu),
            )
            response.raise_for_status()
            reservation_id = response.json()["id"]

        return {
            "num": num,
            "success": True,
            "order_id": order_id,
            "reservation_id": reservation_id,
            "total": order["totalAmount"],
            "time": round(time.time() - start_time, 3),
        }
    except httpx.HTTPStatusError as e:
        return {
            "num": num,
            "success": False,
            "error": f"{e.response.status_code} {e.response.text[:100]}",
            "time": round(time.time() - start_time, 3),
        }
    except httpx.HTTPError as e:
        return {
            "num": num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# PRE-FLIGHT
# =============================================================================

async def ensure_menu(
    client: httpx.AsyncClient,
    admin_email: Optional[str],
    admin_password: Optional[str],
) -> list[dict]:
    """Return the public menu, seeding it with the admin account if empty."""
    response = await client.get(f"{API_BASE_URL}/menu")
    response.raise_for_status()
    menu = response.json()
    if menu:
        return menu

    if not admin_email or not admin_password:
        print("   Menu is empty and no admin credentials were given")
        return []

    response = await client.post(f"{API_BASE_URL}/auth/login", json={
        "email": admin_email,
        "password": admin_password,
    })
    response.raise_for_status()
    headers = {"x-auth-token": response.json()["token"]}

    for item in SEED_MENU:
        response = await client.post(
            f"{API_BASE_URL}/menu",
            json={**item, "image": "https://placehold.co/400x300"},
            headers=headers,
        )
        response.raise_for_status()
        menu.append(response.json())

    print(f"   Seeded {len(menu)} menu items")
    return menu


async def run_simulation(
    num_customers: int = TOTAL_CUSTOMERS,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> dict[str, Any]:
    print("=" * 70)
    print("LOAD SIMULATION - CONCURRENT CUSTOMERS")
    print("=" * 70)
    print(f"Customers: {num_customers}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(timeout=30.0) as client:
        menu = await ensure_menu(client, admin_email, admin_password)
        if not menu:
            print("\nNothing to order. Create an admin with scripts/create_admin.py first.")
            sys.exit(1)

        start_time = time.time()
        results = await asyncio.gather(*[
            run_customer(client, i + 1, menu) for i in range(num_customers)
        ])
        total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful flows: {len(successful)}/{num_customers}")
    print(f"Failed flows: {len(failed)}/{num_customers}")
    print(f"Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        bookings = len([r for r in successful if r["reservation_id"]])
        print("\nPerformance Metrics:")
        print(f"   Average flow: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")
        print(f"   Reservations: {bookings}")
        print(f"   Order value: {sum(r['total'] for r in successful):.2f}")

    if failed:
        print("\nFailed flow details (showing first 5):")
        for f in failed[:5]:
            print(f"   Customer #{f['num']}: {f['error']}")

    print("=" * 70)

    return {
        "total": num_customers,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load Simulation Script")
    parser.add_argument("--customers", type=int, default=TOTAL_CUSTOMERS, help="Number of customers")
    parser.add_argument("--admin-email", help="Admin login used to seed an empty menu")
    parser.add_argument("--admin-password", help="Admin password")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")
    asyncio.run(run_simulation(args.customers, args.admin_email, args.admin_password))
