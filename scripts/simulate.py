"""
Checkout Load Simulation

Fires many concurrent cart → checkout flows at a running API to check
that every order lands with all of its lines.
Run from project root: python scripts/simulate.py --orders 50 --mode both
"""

import argparse
import asyncio
import random
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Ali", "Sara", "Bilal", "Ayesha", "Hamza", "Fatima", "Usman", "Zainab", "Omar", "Hira"]
LAST_NAMES = ["Khan", "Ahmed", "Malik", "Hussain", "Qureshi", "Sheikh", "Butt", "Chaudhry"]
AREAS = ["Gulberg III", "DHA Phase 5", "Model Town", "Johar Town", "Bahria Town", "Cantt"]
MENU_ITEMS = [
    {"id": "chicken-biryani", "name": "Chicken Biryani", "price": 12.99},
    {"id": "mutton-karahi", "name": "Mutton Karahi", "price": 18.99},
    {"id": "seekh-kebab", "name": "Seekh Kebab", "price": 9.99},
    {"id": "garlic-naan", "name": "Garlic Naan", "price": 2.99},
    {"id": "nihari", "name": "Beef Nihari", "price": 14.99},
    {"id": "mango-lassi", "name": "Mango Lassi", "price": 4.49},
    {"id": "gulab-jamun", "name": "Gulab Jamun", "price": 5.99},
]


def generate_random_customer() -> dict[str, str]:
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "email": f"{first.lower()}.{last.lower()}{random.randint(1, 999)}@example.com",
        "phone": f"+92 3{random.randint(0, 4)}{random.randint(0, 9)} {random.randint(1000000, 9999999)}",
        "address": f"House {random.randint(1, 300)}, {random.choice(AREAS)}, Lahore",
    }


async def fill_cart(client: httpx.AsyncClient, cart_id: str) -> int:
    """Add 1-4 random dishes (1-3 units each). Returns the number of distinct lines."""
    dishes = random.sample(MENU_ITEMS, random.randint(1, 4))
    for dish in dishes:
        for _ in range(random.randint(1, 3)):
            response = await client.post(f"{API_BASE_URL}/api/cart/{cart_id}/items", json=dish)
            response.raise_for_status()
    return len(dishes)


async def place_order(client: httpx.AsyncClient, order_num: int, mode: str) -> dict[str, Any]:
    """One full cart → checkout flow, COD or card."""
    cart_id = f"sim-{uuid.uuid4()}"
    start_time = time.time()
    result: dict[str, Any] = {"order_num": order_num, "mode": mode, "success": False}

    try:
        result["lines"] = await fill_cart(client, cart_id)
        body = {"cart_id": cart_id, **generate_random_customer(), "payment_method": mode}

        if mode == "card":
            response = await client.post(
                f"{API_BASE_URL}/api/checkout/payment-intent",
                json={"cart_id": cart_id, "email": body["email"]},
            )
            response.raise_for_status()
            # The widget would confirm the intent; its id prefixes the secret
            body["payment_reference"] = response.json()["clientSecret"].split("_secret")[0]

        response = await client.post(f"{API_BASE_URL}/api/checkout", json=body, timeout=30.0)
        result["time"] = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            result.update(
                success=True,
                order_id=data["order"]["id"],
                total=data["order"]["total_amount"],
                saved_lines=len(data["items"]),
            )
        else:
            result["error"] = response.text[:100]
    except httpx.HTTPError as e:
        result["time"] = round(time.time() - start_time, 3)
        result["error"] = str(e)[:100]

    return result


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(mode: str = "both", num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the load simulation.

    Args:
        mode: "cod", "card", or "both"
        num_orders: Number of orders to simulate
    """
    print("=" * 70)
    print("CHECKOUT LOAD SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Mode: {mode}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        tasks = []
        for i in range(num_orders):
            order_mode = mode if mode != "both" else ("cod" if i % 2 == 0 else "card")
            tasks.append(place_order(client, i + 1, order_mode))
        results = await asyncio.gather(*tasks)
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    partial = [r for r in successful if r["saved_lines"] != r["lines"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    print(f"Orders with missing lines: {len(partial)}")
    print(f"Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        print("\nPerformance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Total Revenue: ${total_revenue:.2f}")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']} [{f['mode']}]: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
    if response.status_code != 200:
        print(f"Health check failed: {response.text}")
        return False
    data = response.json()
    print(f"Status: {data.get('status')} (backend: {data.get('backend')}, redis: {data.get('redis')})")
    return True


def main():
    parser = argparse.ArgumentParser(description="Checkout load simulation")
    parser.add_argument("--mode", choices=["cod", "card", "both"], default="both")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS)
    parser.add_argument("--skip-health", action="store_true")
    args = parser.parse_args()

    if not args.skip_health and not asyncio.run(check_health()):
        return
    asyncio.run(run_simulation(mode=args.mode, num_orders=args.orders))


if __name__ == "__main__":
    main()
