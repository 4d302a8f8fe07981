# Overview: Pytest coverage for the public read-model mirror.

"""
Public Mirror Tests

- Owner writes republish the public profile, bank payload included.
- Clearing every bank field clears the public payload.
- Product writes and deletes follow through to public_products.
- A failed mirror write never undoes the private write.
- rebuild_all converges the public tables with private state.
"""

from swiftflow.extensions import db
from swiftflow.models import Product, PublicOwner, PublicProduct
from swiftflow.services import mirror_service, owner_service, product_service
from swiftflow.services.mirror_service import MirrorWriteError
from conftest import make_product


PRODUCT_PAYLOAD = {
    "name": "Denim Jacket",
    "price_cents": 45000,
    "stock": 4,
    "media": [{"url": "/uploads/products/a.jpg", "kind": "image"}],
}


class TestOwnerMirror:
    def test_bank_details_are_published(self, db_session, owner_a):
        owner_service.save_bank_details(owner_a, {
            "bankDetails": {
                "bankName": "Capitec",
                "accountHolder": "T Nkosi",
                "accountNumber": "1234567890",
            }
        })

        public = db.session.get(PublicOwner, owner_a.id)
        assert public.has_bank is True
        assert public.bank_details["bank_name"] == "Capitec"
        assert public.display_name == "Thandi's Threads"

    def test_clearing_bank_fields_clears_public_payload(self, db_session, owner_a):
        mirror_service.publish_owner(owner_a)
        assert db.session.get(PublicOwner, owner_a.id).has_bank is True

        owner_service.update_profile(owner_a, {
            "bank_name": "",
            "account_holder": "",
            "account_number": "",
        })

        public = db.session.get(PublicOwner, owner_a.id)
        assert public.has_bank is False
        assert public.bank_details is None

    def test_private_fields_are_not_published(self, db_session, owner_a):
        view = mirror_service.owner_public_view(owner_a)
        assert "email" not in view
        assert "email_report_recipient" not in view


class TestProductMirror:
    def test_create_update_delete_follow_through(self, db_session, owner_a):
        product = product_service.create_product(owner_a.id, PRODUCT_PAYLOAD)
        assert db.session.get(PublicProduct, product.id).price_cents == 45000

        product_service.update_product(owner_a.id, product.id, {"is_visible": False})
        assert db.session.get(PublicProduct, product.id).is_visible is False

        product_service.delete_product(owner_a.id, product.id)
        assert db.session.get(PublicProduct, product.id) is None

    def test_low_stock_flag_uses_threshold(self, app, db_session, owner_a):
        threshold = app.config["LOW_STOCK_THRESHOLD"]
        at_threshold = make_product(db_session, owner_a, stock=threshold)
        sold_out = make_product(db_session, owner_a, stock=0)

        assert mirror_service.publish_product(at_threshold).is_low_stock is True
        assert mirror_service.publish_product(sold_out).is_low_stock is False

    def test_failed_mirror_keeps_private_write(self, db_session, owner_a, monkeypatch):
        def broken_commit(document, document_id):
            db.session.rollback()
            raise MirrorWriteError("down", document=document, document_id=document_id)

        monkeypatch.setattr(mirror_service, "_commit_mirror", broken_commit)

        product = product_service.create_product(owner_a.id, PRODUCT_PAYLOAD)

        assert db.session.get(Product, product.id).name == "Denim Jacket"


class TestRebuild:
    def test_rebuild_converges(self, db_session, owner_a, owner_b):
        kept = make_product(db_session, owner_a, name="Kept")
        # An orphaned public row with no private source
        db.session.add(PublicProduct(id="orphan", owner_id=owner_a.id, name="Ghost", price_cents=1, media=[]))
        db.session.commit()

        counts = mirror_service.rebuild_all()

        assert counts == {"owners": 2, "products": 1, "removed": 1, "failed": 0}
        assert db.session.get(PublicProduct, "orphan") is None
        assert db.session.get(PublicProduct, kept.id).name == "Kept"
        assert db.session.get(PublicOwner, owner_b.id).has_bank is False
