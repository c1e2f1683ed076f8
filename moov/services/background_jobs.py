"""
Background Jobs Service
Housekeeping for the asset store

Features:
- Scheduled jobs using APScheduler
- Configurable timezone
- Job monitoring and statistics
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from moov.database import SessionLocal
from moov.models.user import User
from moov.services.asset_storage_service import asset_storage
from datetime import datetime
import logging
import os
import time
from typing import Dict
from pytz import timezone

logger = logging.getLogger(__name__)


class BackgroundJobService:
    """
    Manages scheduled background jobs

    Jobs:
    - Purge expired upload URLs (every 15 minutes)
    - Remove orphaned assets (daily at 4 AM): uploads never attached to a
      profile, and old avatars whose removal failed during replacement

    Usage:
        jobs = BackgroundJobService()
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self):
        """Initialize scheduler with timezone configuration"""
        tz_name = os.getenv("TIMEZONE", "UTC")
        self.timezone = timezone(tz_name)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)

        # Track job execution statistics
        self.job_stats = {
            'purge_upload_tokens': {'last_run': None, 'status': 'idle', 'error': None},
            'cleanup_orphaned_assets': {'last_run': None, 'status': 'idle', 'error': None},
        }

    def start(self):
        """
        Start all scheduled background jobs

        Jobs are only started if ENABLE_BACKGROUND_JOBS=true in environment
        """
        if os.getenv("ENABLE_BACKGROUND_JOBS", "true").lower() != "true":
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.purge_upload_tokens,
            trigger=CronTrigger(minute='*/15', timezone=self.timezone),
            id='purge_upload_tokens',
            name='Purge expired upload URLs',
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info("Scheduled: Purge expired upload URLs (every 15 minutes)")

        self.scheduler.add_job(
            func=self.cleanup_orphaned_assets,
            trigger=CronTrigger(hour=4, minute=0, timezone=self.timezone),
            id='cleanup_orphaned_assets',
            name='Remove orphaned assets',
            replace_existing=True,
            max_instances=1
        )
        logger.info("Scheduled: Remove orphaned assets (daily 4:00 AM)")

        self.scheduler.start()
        logger.info(f"Background jobs started ({len(self.scheduler.get_jobs())} active, timezone {self.timezone})")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """Job information including next run times and the last outcome"""
        jobs_info = []
        for job in self.scheduler.get_jobs():
            stats = self.job_stats.get(job.id, {})
            jobs_info.append({
                'id': job.id,
                'name': job.name,
                'next_run': job.next_run_time.isoformat() if job.next_run_time else None,
                'last_run': stats.get('last_run'),
                'status': stats.get('status', 'idle'),
                'error': stats.get('error')
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    def _record(self, job_id: str, status: str, error: str = None):
        self.job_stats[job_id] = {
            'last_run': datetime.now(self.timezone).isoformat(),
            'status': status,
            'error': error,
        }

    # ============================================
    # Job Methods
    # ============================================

    def purge_upload_tokens(self) -> int:
        removed = asset_storage.upload_tokens.cleanup_expired()
        self._record('purge_upload_tokens', 'success')
        return removed

    def cleanup_orphaned_assets(self) -> int:
        """
        Delete stored files no profile points at.
        Files younger than the upload URL lifetime are kept, they may still be attached.
        """
        job_id = 'cleanup_orphaned_assets'
        self._record(job_id, 'running')

        if not asset_storage.root.is_dir():
            self._record(job_id, 'success')
            return 0

        db = SessionLocal()
        try:
            referenced = {
                storage_id for (storage_id,) in
                db.query(User.profile_image_storage_id).filter(User.profile_image_storage_id.isnot(None))
            }

            cutoff = time.time() - asset_storage.upload_ttl
            removed = 0
            for path in asset_storage.root.iterdir():
                if not path.is_file() or path.name in referenced:
                    continue
                if asset_storage.path_for(path.name) is None:
                    continue  # not an asset this store created
                if path.stat().st_mtime > cutoff:
                    continue
                asset_storage.delete(path.name)
                removed += 1

            logger.info(f"Removed {removed} orphaned assets")
            self._record(job_id, 'success')
            return removed
        except Exception as e:
            logger.error(f"Orphaned asset cleanup failed: {str(e)}")
            self._record(job_id, 'failed', str(e))
            return 0
        finally:
            db.close()


# Global instance
background_jobs = BackgroundJobService()
