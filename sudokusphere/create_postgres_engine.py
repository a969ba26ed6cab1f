from sqlalchemy.ext.asyncio import create_async_engine
from sudokusphere.load_secrets import database_url

engine = create_async_engine(database_url, pool_size=20, max_overflow=20)
