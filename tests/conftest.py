import sqlite3

import pytest


def _create_location_db(path):
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE ZRTCLLOCATIONMO "
        "(Z_PK INTEGER, ZTIMESTAMP REAL, ZLATITUDE REAL, ZLONGITUDE REAL, ZALTITUDE REAL, ZNOTE TEXT)"
    )
    conn.executemany(
        "INSERT INTO ZRTCLLOCATIONMO VALUES (?, ?, ?, ?, ?, ?)",
        [
            (2, 100.0, 0.0, 1.0, 20.0, "café & bar"),
            (1, 0.0, 0.0, 0.0, 10.0, None),
            (3, 8000.0, 1.0, 1.0, 0.0, "home"),
        ],
    )
    conn.execute("CREATE TABLE ZNOTES (Z_PK INTEGER, ZTEXT TEXT)")
    conn.execute("INSERT INTO ZNOTES VALUES (1, 'no position here')")
    conn.execute("CREATE TABLE ZLOCATIONOFINTERESTMO (Z_PK INTEGER, ZLATITUDE REAL, ZLONGITUDE REAL)")
    conn.executemany(
        "INSERT INTO ZLOCATIONOFINTERESTMO VALUES (?, ?, ?)",
        [(1, 48.85, 2.35), (2, 51.5, -0.12)],
    )
    conn.execute(
        "CREATE TABLE ZLOCATIONOFINTERESTTRANSITIONMO (Z_PK INTEGER, ZLOCATIONOFINTEREST INTEGER, ZSTARTDATE REAL)"
    )
    conn.executemany(
        "INSERT INTO ZLOCATIONOFINTERESTTRANSITIONMO VALUES (?, ?, ?)",
        [(10, 2, 5000.0), (11, 1, 1000.0)],
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def location_db(tmp_path):
    return _create_location_db(tmp_path / "Cache.sqlite")
