"""
Load test for the 100 Day Recomp API
Simulates seeded contestants uploading scans while others watch the leaderboard.

Run seed_contestants.py first; every seeded contestant shares SEED_PASSWORD.
"""

import asyncio
import random
import time
import aiohttp

# -----------------------------
# CONFIG - ADJUST IF NEEDED
# -----------------------------
BASE_URL = "http://127.0.0.1:5000"

# Seeded contestant usernames: contestant<N>
MIN_CONTESTANT = 1
MAX_CONTESTANT = 100
PASSWORD = "password123"

# Total scan uploads to send
TOTAL_UPLOADS = 300

# Leaderboard reads per upload
READS_PER_UPLOAD = 5

# How many run simultaneously
MAX_CONCURRENT = 50


# -----------------------------
# Load test functions
# -----------------------------
async def login(session, username):
    payload = {"username": username, "password": PASSWORD}
    async with session.post(f"{BASE_URL}/api/login", json=payload) as resp:
        if resp.status != 200:
            text = await resp.text()
            print(f"[LOGIN {resp.status}] {username} :: {text[:200]}")
            return False
        return True


async def upload_scan(session, username):
    scan_date = f"2025-{random.randint(9, 11):02d}-{random.randint(1, 26):02d}"
    payload = {
        "scan_date": scan_date,
        "body_fat_percent": round(random.uniform(12, 35), 1),
        "lean_mass": round(random.uniform(85, 165), 1),
        "total_weight": round(random.uniform(130, 230), 1),
    }

    try:
        async with session.post(f"{BASE_URL}/api/scans", json=payload) as resp:
            text = await resp.text()
            if resp.status != 201:
                print(f"[ERROR {resp.status}] {username} {payload} :: {text[:200]}")
            return resp.status
    except aiohttp.ClientError as e:
        print(f"[EXCEPTION] {e} :: {username} {payload}")
        return None


async def read_leaderboard(session):
    try:
        async with session.get(f"{BASE_URL}/api/leaderboard") as resp:
            await resp.read()
            if resp.status != 200:
                print(f"[LEADERBOARD {resp.status}]")
            return resp.status
    except aiohttp.ClientError as e:
        print(f"[EXCEPTION] leaderboard :: {e}")
        return None


async def worker(name, task_queue):
    # one cookie jar per worker so each keeps its own login
    async with aiohttp.ClientSession() as session:
        logged_in_as = None
        while True:
            item = await task_queue.get()
            if item is None:
                task_queue.task_done()
                break

            kind, username = item
            if kind == "upload":
                if logged_in_as != username:
                    session.cookie_jar.clear()
                    logged_in_as = username if await login(session, username) else None
                if logged_in_as:
                    await upload_scan(session, username)
            else:
                await read_leaderboard(session)
            task_queue.task_done()


async def main():
    task_queue = asyncio.Queue()

    # Generate all simulated requests
    items = []
    for _ in range(TOTAL_UPLOADS):
        n = random.randint(MIN_CONTESTANT, MAX_CONTESTANT)
        items.append(("upload", f"contestant{n}"))
        items.extend(("read", None) for _ in range(READS_PER_UPLOAD))
    random.shuffle(items)

    for item in items:
        await task_queue.put(item)

    # Add sentinel None tasks to close workers
    for _ in range(MAX_CONCURRENT):
        await task_queue.put(None)

    workers = [
        asyncio.create_task(worker(f"worker-{i}", task_queue))
        for i in range(MAX_CONCURRENT)
    ]

    print(f"Sending {len(items)} requests with concurrency {MAX_CONCURRENT}...")
    start = time.time()

    await task_queue.join()
    end = time.time()

    for w in workers:
        await w

    print(f"Completed in {end - start:.2f} seconds")


if __name__ == "__main__":
    asyncio.run(main())
