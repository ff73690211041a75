from .database import delete_blob, get_conn, get_db, init_db, read_blob, write_blob

__all__ = ["delete_blob", "get_conn", "get_db", "init_db", "read_blob", "write_blob"]
