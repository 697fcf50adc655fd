"""
Replace the full slot unique key on appointments with a partial index

Migration to:
- drop unique_property_schedule (it also blocked re-booking a slot freed by a cancellation)
- create uq_appointments_active_slot on (property_id, scheduled_date, scheduled_time)
  WHERE status <> 'cancelled'
- compact priority_number back to a dense 1..N per property for non-cancelled rows
- make appointments.assigned_agent_id ON DELETE RESTRICT (was SET NULL, which orphaned
  assigned and scheduled viewings when an agent account was deleted)

Run with: python migrations/add_active_slot_index.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from realestate.database import engine


def upgrade():
    """Install the partial slot index and renumber queues"""
    with engine.connect() as conn:
        result = conn.execute(text("""
            SELECT indexname
            FROM pg_indexes
            WHERE tablename = 'appointments'
            AND indexname IN ('unique_property_schedule', 'uq_appointments_active_slot')
        """))
        existing_indexes = {row[0] for row in result}

        if 'unique_property_schedule' in existing_indexes:
            conn.execute(text("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS unique_property_schedule"))
            conn.execute(text("DROP INDEX IF EXISTS unique_property_schedule"))
            print("✅ Dropped unique_property_schedule")
        else:
            print("ℹ️  unique_property_schedule not present")

        if 'uq_appointments_active_slot' not in existing_indexes:
            conn.execute(text("""
                CREATE UNIQUE INDEX uq_appointments_active_slot
                ON appointments (property_id, scheduled_date, scheduled_time)
                WHERE status <> 'cancelled'
            """))
            print("✅ Created uq_appointments_active_slot")
        else:
            print("ℹ️  uq_appointments_active_slot already exists")

        conn.execute(text("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_assigned_agent_id_fkey"))
        conn.execute(text("""
            ALTER TABLE appointments
            ADD CONSTRAINT appointments_assigned_agent_id_fkey
            FOREIGN KEY (assigned_agent_id) REFERENCES users(id) ON DELETE RESTRICT
        """))
        print("✅ assigned_agent_id now ON DELETE RESTRICT")

        renumbered = conn.execute(text("""
            UPDATE appointments a
            SET priority_number = ranked.position
            FROM (
                SELECT id, ROW_NUMBER() OVER (
                    PARTITION BY property_id ORDER BY priority_number, created_at, id
                ) AS position
                FROM appointments
                WHERE status <> 'cancelled'
            ) ranked
            WHERE a.id = ranked.id AND a.priority_number IS DISTINCT FROM ranked.position
        """))
        print(f"✅ Renumbered {renumbered.rowcount} appointment(s)")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Drop the partial slot index and restore SET NULL (priority numbers are left as they are)"""
    with engine.connect() as conn:
        conn.execute(text("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_assigned_agent_id_fkey"))
        conn.execute(text("""
            ALTER TABLE appointments
            ADD CONSTRAINT appointments_assigned_agent_id_fkey
            FOREIGN KEY (assigned_agent_id) REFERENCES users(id) ON DELETE SET NULL
        """))
        conn.execute(text("DROP INDEX IF EXISTS uq_appointments_active_slot"))
        conn.commit()
        print("✅ Dropped uq_appointments_active_slot")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Manage the active slot index migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
