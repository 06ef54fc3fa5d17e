"""
Migration: add violations.voided to an existing SQLite database.
Run once: python migrate_add_voided.py [path/to/guardpost.db]

Local void overrides recorded before this migration are folded into the new
column the next time the API starts.
"""
import sqlite3
import os
import sys

db_path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(os.path.dirname(__file__), "guardpost.db")
con = sqlite3.connect(db_path)

existing = {row[1] for row in con.execute("PRAGMA table_info(violations)")}

if "voided" not in existing:
    con.execute("ALTER TABLE violations ADD COLUMN voided BOOLEAN")
    print("Added column: voided")
else:
    print("Column already exists: voided")

con.commit()
con.close()
print("Migration done.")
