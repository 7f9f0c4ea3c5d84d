from ticketswift.tasks.celery_app import celery
from ticketswift.tasks import worker_jobs

@celery.task(name="ticketswift.tasks.jobs.purge_expired_codes")
def purge_expired_codes():
    return worker_jobs.purge_expired_codes()

@celery.task(name="ticketswift.tasks.jobs.reconcile_code_status")
def reconcile_code_status():
    return worker_jobs.reconcile_code_status()


@celery.task(name="ticketswift.tasks.jobs.flag_orphaned_orders")
def flag_orphaned_orders():
    return worker_jobs.flag_orphaned_orders()
