from contextlib import asynccontextmanager

from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager


class NoopTransactionManager(TransactionManager):
    @asynccontextmanager
    async def start(self):
        yield
