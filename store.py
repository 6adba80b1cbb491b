import json
import sqlite3

from contextlib import closing
from decimal    import Decimal
from typing     import TypedDict

class StoreError(Exception):
    """Reading from or writing to the staking database failed."""

class NotFoundError(Exception):
    """No staking record exists for the requested token address."""
    def __init__(self, key):
        super().__init__(f"No staking record for {key}")
        self.key = key

class StakingRecord(TypedDict):
    token_address: str
    staking_address: str
    token_name: str
    project_name: str
    chain: str
    is_stablecoin: bool
    categories: list[str]
    logo_url: str
    decimals: int
    apy: int
    tvl: Decimal
    created_at: float
    updated_at: float

# Descriptive columns are written once, when the record is created.  Later reconciliations only
# touch the snapshot columns.
METADATA_COLUMNS = ('staking_address', 'token_name', 'project_name', 'chain', 'is_stablecoin',
                    'categories', 'logo_url', 'decimals', 'created_at')
SNAPSHOT_COLUMNS = ('apy', 'tvl', 'updated_at')

class StakingStore:
    """
    sqlite3 backed store of `StakingRecord`s keyed by token address.

    Every operation opens its own connection so a single store can be shared by the request
    handlers and the reconciliation worker threads.  Writes happen inside `BEGIN IMMEDIATE`
    transactions: writers serialize on the database write lock and readers (WAL mode) only ever
    see fully committed rows.
    """

    def __init__(self, sqlite_db: str, timeout: float = 10):
        self.sqlite_db = sqlite_db
        self.timeout   = timeout

        try:
            with closing(self._connect()) as sql:
                cursor = sql.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS staking (
                        token_address TEXT PRIMARY KEY NOT NULL,
                        staking_address TEXT NOT NULL,
                        token_name TEXT NOT NULL,
                        project_name TEXT NOT NULL,
                        chain TEXT NOT NULL,
                        is_stablecoin INTEGER NOT NULL,
                        categories TEXT NOT NULL, /* JSON list of tags */
                        logo_url TEXT NOT NULL,
                        decimals INTEGER NOT NULL,
                        apy INTEGER NOT NULL,
                        tvl TEXT NOT NULL, /* lossless decimal string */
                        created_at FLOAT NOT NULL DEFAULT ((julianday('now') - 2440587.5)*86400.0), /* unix epoch */
                        updated_at FLOAT NOT NULL,

                        CHECK(length(token_address) == 42)
                    )
                    """)
                cursor.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialise database {sqlite_db}: {e}") from e

    def _connect(self):
        # Autocommit mode; transactions are opened explicitly where needed.
        return sqlite3.connect(self.sqlite_db, timeout=self.timeout, isolation_level=None)

    def upsert(self, key: str, fields: dict) -> bool:
        """
        Creates the record for `key` from `fields`, or, if it already exists, updates only its
        snapshot columns (apy, tvl, updated_at) leaving the descriptive metadata untouched.

        :return: True if the record was created, False if an existing record was updated.
        :raises StoreError: if the write failed; nothing is written in that case.
        """
        try:
            with closing(self._connect()) as sql:
                cursor = sql.cursor()
                cursor.execute("BEGIN IMMEDIATE")
                try:
                    cursor.execute("SELECT 1 FROM staking WHERE token_address = ?", (key,))
                    created = cursor.fetchone() is None
                    if created:
                        columns = ('token_address',) + METADATA_COLUMNS + SNAPSHOT_COLUMNS
                        values  = (key,) + tuple(_to_db(c, fields[c]) for c in columns[1:])
                        cursor.execute(
                            f"INSERT INTO staking ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))})",
                            values)
                    else:
                        cursor.execute(
                            f"UPDATE staking SET {', '.join(f'{c} = ?' for c in SNAPSHOT_COLUMNS)} WHERE token_address = ?",
                            tuple(_to_db(c, fields[c]) for c in SNAPSHOT_COLUMNS) + (key,))
                    cursor.execute("COMMIT")
                except BaseException:
                    cursor.execute("ROLLBACK")
                    raise
                return created
        except sqlite3.Error as e:
            raise StoreError(f"Failed to upsert staking record {key}: {e}") from e

    def get_all(self) -> list[StakingRecord]:
        try:
            with closing(self._connect()) as sql:
                sql.row_factory = sqlite3.Row
                rows = sql.execute("SELECT * FROM staking ORDER BY token_address").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to fetch staking records: {e}") from e
        return [_to_record(row) for row in rows]

    def get_by_key(self, key: str) -> StakingRecord:
        """
        :raises NotFoundError: if there is no record for `key`.
        :raises StoreError: if the database could not be read.
        """
        try:
            with closing(self._connect()) as sql:
                sql.row_factory = sqlite3.Row
                row = sql.execute("SELECT * FROM staking WHERE token_address = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to fetch staking record {key}: {e}") from e
        if row is None:
            raise NotFoundError(key)
        return _to_record(row)


def _to_db(column, value):
    if column == 'categories':
        return json.dumps(list(value))
    if column == 'tvl':
        return format(Decimal(value), 'f')
    if column == 'is_stablecoin':
        return int(bool(value))
    return value


def _to_record(row) -> StakingRecord:
    record                  = dict(row)
    record['is_stablecoin'] = bool(record['is_stablecoin'])
    record['categories']    = json.loads(record['categories'])
    record['tvl']           = Decimal(record['tvl'])
    return record
