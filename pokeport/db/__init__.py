from pokeport.db.database import create_db_engine
from pokeport.db.snapshots import recent_snapshots, store_snapshot

__all__ = ["create_db_engine", "recent_snapshots", "store_snapshot"]
