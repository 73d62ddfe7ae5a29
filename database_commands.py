#!/usr/bin/env python3
"""
Database Management Commands for the fleet discipline API

Usage:
    python database_commands.py --help
    python database_commands.py init-db
    python database_commands.py seed-demo
    python database_commands.py cleanup-activity --days 90
    python database_commands.py status
"""

import os
import sys
import argparse
import logging
from sqlalchemy import text
from app import create_app, db

logger = logging.getLogger(__name__)

def setup_app():
    """Build the app for CLI use (no background threads)."""
    # Set a temporary JWT secret for CLI operations if not set
    if not os.environ.get('JWT_SECRET_KEY'):
        os.environ['JWT_SECRET_KEY'] = 'cli_temp_secret_not_for_production_use_only'

    return create_app({'BACKGROUND_TASK_MODE': 'inline', 'ENABLE_SCHEDULER': False})

def cmd_init_db(args):
    """Create all tables that do not exist yet."""
    app = setup_app()
    with app.app_context():
        db.create_all()
        print("Database tables created")

def cmd_seed_demo(args):
    """Insert a demo franchise with one driver and one staff member."""
    from models import Franchise, Driver, Staff

    app = setup_app()
    with app.app_context():
        if Franchise.query.filter_by(code='DEMO').first():
            print("Demo data already present; nothing to do")
            return

        franchise = Franchise(name='Demo Franchise', code='DEMO', city='Chennai')
        db.session.add(franchise)
        db.session.flush()

        driver = Driver(franchise_id=franchise.id, driver_code='DRV0001',
                        first_name='Demo', last_name='Driver', phone='9000000001')
        staff = Staff(franchise_id=franchise.id, name='Demo Staff',
                      email='staff@demo.example', phone='9000000002')
        db.session.add_all([driver, staff])
        db.session.commit()

        print(f"Franchise: {franchise.id}")
        print(f"Driver:    {driver.id}")
        print(f"Staff:     {staff.id}")

def cmd_cleanup_activity(args):
    """Delete activity log entries older than --days."""
    from services.activity_service import ActivityService

    app = setup_app()
    with app.app_context():
        days = args.days or app.config['ACTIVITY_RETENTION_DAYS']
        deleted = ActivityService.cleanup_old_logs(days)
        print(f"Removed {deleted} activity log entries older than {days} days")

def cmd_status(args):
    """Display connection status and row counts."""
    from models import Franchise, Driver, Staff, DisciplinaryWarning, Complaint, ActivityLog

    app = setup_app()
    with app.app_context():
        print("=" * 60)
        print("DATABASE STATUS REPORT")
        print("=" * 60)

        try:
            db.session.execute(text('SELECT 1'))
            print("Connection Status: HEALTHY")
        except Exception as e:
            print(f"Connection Status: FAILED ({str(e)})")
            sys.exit(1)

        print(f"Warning threshold: {app.config['WARNING_THRESHOLD']}")
        print()
        for label, model in [('Franchises', Franchise), ('Drivers', Driver), ('Staff', Staff),
                             ('Warnings', DisciplinaryWarning), ('Complaints', Complaint),
                             ('Activity logs', ActivityLog)]:
            print(f"{label}: {model.query.count()}")

def main():
    """Main command line interface."""
    parser = argparse.ArgumentParser(
        description="Database Management Commands for the fleet discipline API",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('init-db', help='Create database tables')
    subparsers.add_parser('seed-demo', help='Insert demo franchise, driver and staff')

    cleanup_parser = subparsers.add_parser('cleanup-activity', help='Delete old activity log entries')
    cleanup_parser.add_argument('--days', type=int, help='Retention window in days')

    subparsers.add_parser('status', help='Display database status')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        'init-db': cmd_init_db,
        'seed-demo': cmd_seed_demo,
        'cleanup-activity': cmd_cleanup_activity,
        'status': cmd_status,
    }

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"Unexpected error: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
