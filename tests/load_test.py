import asyncio
import httpx
import time
import os
import sys
from dotenv import load_dotenv

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.auth_service import TokenVerifier

# Load environment variables
load_dotenv()

TARGET_URL = "http://localhost:8000"


async def simulate_user(client: httpx.AsyncClient, verifier: TokenVerifier, index: int, total_requests: int):
    """Simulate a single user syncing a profile and then browsing the catalog"""
    uid = f"load-test-{index}"
    headers = {"Authorization": f"Bearer {verifier.issue(uid)}"}

    success = 0
    fail = 0
    times = []

    resp = await client.post(
        f"{TARGET_URL}/api/users",
        json={"email": f"{uid}@example.com", "displayName": f"Load Tester {index}"},
        headers=headers,
    )
    if resp.status_code not in (200, 201):
        print(f"❌ Sync failed for {uid}: {resp.status_code}")
        return 0, total_requests, []

    for _ in range(total_requests):
        start = time.time()
        try:
            # Hit the quizzes list endpoint (lightweight but DB involved)
            resp = await client.get(f"{TARGET_URL}/api/quizzes", headers=headers)
            if resp.status_code == 200:
                success += 1
            else:
                fail += 1
        except httpx.HTTPError:
            fail += 1

        times.append(time.time() - start)

    return success, fail, times


async def run_load_test(concurrent_users: int, requests_per_user: int):
    secret = os.getenv("AUTH_SECRET")
    if not secret:
        print("❌ Error: AUTH_SECRET not found in .env file.")
        sys.exit(1)
    verifier = TokenVerifier(secret, int(os.getenv("TOKEN_TTL_SECONDS", "2592000")))

    print(f"🚀 Starting Load Test on {TARGET_URL}")
    print(f"👥 Users: {concurrent_users}")
    print(f"🔄 Requests per user: {requests_per_user}")
    print(f"📨 Total requests: {concurrent_users * requests_per_user}")
    print("-" * 40)

    async with httpx.AsyncClient(timeout=10.0) as client:
        start_time = time.time()

        tasks = [simulate_user(client, verifier, i, requests_per_user) for i in range(concurrent_users)]
        results = await asyncio.gather(*tasks)

        total_time = time.time() - start_time

    # Aggregate results
    total_success = sum(r[0] for r in results)
    total_fail = sum(r[1] for r in results)
    all_times = [t for r in results for t in r[2]]
    avg_latency = (sum(all_times) / len(all_times)) * 1000 if all_times else 0

    print("-" * 40)
    print(f"✅ Test Completed in {total_time:.2f} seconds")
    print("📊 Results:")
    print(f"   Success: {total_success}")
    print(f"   Failed:  {total_fail}")
    print(f"   RPS (Req/sec): {len(all_times) / total_time:.2f}")
    print(f"   Avg Latency: {avg_latency:.2f} ms")


if __name__ == "__main__":
    USERS = 50
    REQS = 20

    # python tests/load_test.py [url] [users] [reqs]
    if len(sys.argv) > 1 and sys.argv[1].startswith("http"):
        TARGET_URL = sys.argv[1].rstrip("/")
    if len(sys.argv) > 2:
        USERS = int(sys.argv[2])
    if len(sys.argv) > 3:
        REQS = int(sys.argv[3])

    asyncio.run(run_load_test(USERS, REQS))
