import asyncio
from vidify.database import AsyncSessionLocal
from vidify.services.follow_store import reconcile_counters


async def main():
    async with AsyncSessionLocal() as session:
        fixed = await reconcile_counters(session)
    print(f"Reconciled follower/following counters for {fixed} users")


if __name__ == "__main__":
    asyncio.run(main())
