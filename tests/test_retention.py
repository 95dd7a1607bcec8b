from datetime import datetime, timedelta

from debliss import db
from debliss.models import FinishedDelivery, RiderFinishedDelivery
from debliss.services.archive import purge_expired_deliveries

NOW = datetime(2025, 6, 15, 2, 0)


def archive(customer, rider, age):
    created = NOW - age
    finished = FinishedDelivery(
        user_id=customer.id, user_name=customer.name, rider_id=rider.id,
        items=[], created_at=created, updated_at=created,
    )
    rider_copy = RiderFinishedDelivery(
        user_id=customer.id, user_name=customer.name, rider_id=rider.id,
        items=[], created_at=created,
    )
    db.session.add_all([finished, rider_copy])
    db.session.commit()
    return finished, rider_copy


def test_sweep_removes_only_expired_deliveries(app, customer, rider):
    old_finished, old_rider = archive(customer, rider, timedelta(days=8))
    new_finished, new_rider = archive(customer, rider, timedelta(days=6))
    old_ids = (old_finished.id, old_rider.id)

    deleted = purge_expired_deliveries(now=NOW)

    assert deleted == {"finished": 1, "rider": 1}
    db.session.expire_all()
    assert [d.id for d in FinishedDelivery.query.all()] == [new_finished.id]
    assert [d.id for d in RiderFinishedDelivery.query.all()] == [new_rider.id]
    assert db.session.get(FinishedDelivery, old_ids[0]) is None
    assert db.session.get(RiderFinishedDelivery, old_ids[1]) is None


def test_sweep_honours_configured_retention(app, customer, rider):
    archive(customer, rider, timedelta(days=3))
    app.config["FINISHED_RETENTION_DAYS"] = 2

    assert purge_expired_deliveries(now=NOW) == {"finished": 1, "rider": 1}


def test_sweep_with_nothing_to_delete(app, customer, rider):
    archive(customer, rider, timedelta(hours=1))
    assert purge_expired_deliveries(now=NOW) == {"finished": 0, "rider": 0}


def test_purge_command(app, customer, rider):
    archive(customer, rider, timedelta(days=30))
    archive(customer, rider, timedelta(minutes=5))

    result = app.test_cli_runner().invoke(args=["purge-finished", "--days", "7"])

    assert result.exit_code == 0
    assert "Deleted 1 finished orders and 1 rider deliveries" in result.output
    assert FinishedDelivery.query.count() == 1
