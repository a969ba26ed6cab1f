from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import UUID


class SessionLockManager:
    """Serializes the load-modify-store cycle of each game within this process."""

    def __init__(self):
        self.locks: Dict[UUID, Lock] = {}  # game_idごとにLockを管理
        self.holders: Dict[UUID, int] = {}  # game_idごとの待機中・実行中の処理数
        self.lock = Lock()  # locksとholdersへのアクセスを保護

    async def acquire_entry(self, game_id: UUID) -> Lock:
        """Get the Lock of the specified game_id and register one more holder

        Args:
            game_id (UUID): ID to identify this game

        Returns:
            Lock: Lock of the specified game_id
        """
        async with self.lock:
            if game_id not in self.locks:
                self.locks[game_id] = Lock()
                self.holders[game_id] = 0
            self.holders[game_id] += 1
            return self.locks[game_id]

    async def release_entry(self, game_id: UUID) -> None:
        """Unregister one holder and delete the Lock once nobody uses it

        Args:
            game_id (UUID): ID to identify this game
        """
        async with self.lock:
            self.holders[game_id] -= 1
            if self.holders[game_id] == 0:
                del self.locks[game_id]
                del self.holders[game_id]

    @asynccontextmanager
    async def hold(self, game_id: UUID) -> AsyncIterator[None]:
        """Hold the game's lock for the duration of the block

        Args:
            game_id (UUID): ID to identify this game
        """
        game_lock = await self.acquire_entry(game_id)
        try:
            async with game_lock:
                yield
        finally:
            await self.release_entry(game_id)

    def active_count(self) -> int:
        return len(self.locks)
