#!/usr/bin/env python3
"""
Local smoke check against a running server.
Run this before deploying.
"""

import asyncio
import os
import sys

import httpx

BASE_URL = os.getenv("SUMSNAP_URL", "http://localhost:8080")


async def run_checks():
    """Exercise health, validation paths and one streamed answer"""
    print("🧪 Running smoke checks...")
    print("=" * 60)

    tests_passed = 0
    tests_failed = 0

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=30.0) as client:
        # Test 1: Health endpoint
        print("\n📍 Test 1: Health endpoint")
        try:
            response = await client.get("/health")
            data = response.json()
            print(f"✅ Health returned {response.status_code}: {data.get('status')} {data.get('checks')}")
            tests_passed += 1
        except Exception as e:
            print(f"❌ Health check failed: {type(e).__name__}: {e}")
            tests_failed += 1

        # Test 2: Malformed chat history is rejected before any upstream call
        print("\n📍 Test 2: Chat rejects malformed history")
        try:
            response = await client.post("/api/chat", json={"messages": "hello"})
            if response.status_code in (400, 500):
                print(f"✅ Chat returned {response.status_code}: {response.json()}")
                tests_passed += 1
            else:
                print(f"❌ Unexpected status code: {response.status_code}")
                tests_failed += 1
        except Exception as e:
            print(f"❌ Chat validation check failed: {type(e).__name__}: {e}")
            tests_failed += 1

        # Test 3: Streamed answer
        print("\n📍 Test 3: Streamed answer")
        try:
            body = {"messages": [{"role": "user", "content": "Say hello in five words."}]}
            async with client.stream("POST", "/api/chat", json=body) as response:
                if response.status_code != 200:
                    await response.aread()
                    print(f"⚠️  Chat returned {response.status_code}: {response.text}")
                else:
                    received = 0
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                    print(f"✅ Streamed {received} bytes")
            tests_passed += 1
        except Exception as e:
            print(f"❌ Streaming failed: {type(e).__name__}: {e}")
            tests_failed += 1

        # Test 4: Waitlist format validation (no external write)
        print("\n📍 Test 4: Waitlist rejects a bad email")
        try:
            response = await client.post("/api/waitlist", json={"name": "Kim", "email": "not-an-email"})
            data = response.json()
            if data.get("status") is False:
                print(f"✅ Waitlist refused: {data.get('message')}")
                tests_passed += 1
            else:
                print(f"❌ Waitlist accepted an invalid email: {data}")
                tests_failed += 1
        except Exception as e:
            print(f"❌ Waitlist check failed: {e}")
            tests_failed += 1

    print("\n" + "=" * 60)
    print(f"📊 Results: {tests_passed} passed, {tests_failed} failed")
    print("=" * 60)

    return tests_passed, tests_failed


async def main():
    print("🚀 Pre-Deployment Smoke Check")
    print(f"⚠️  Make sure the server is running at {BASE_URL}:")
    print("   python main.py")

    passed, failed = await run_checks()

    if failed == 0:
        print("\n✅ All checks passed! Ready to deploy 🚀")
        return 0
    print(f"\n❌ {failed} check(s) failed. Fix issues before deploying.")
    return 1


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n\n⚠️  Checks interrupted by user")
        sys.exit(1)
