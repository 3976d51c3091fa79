# Overview: API-level tests: JSON shapes and error-to-status mapping through the Flask test client.

"""
Route Tests

Requests go through the real blueprints against the in-memory database.
Assertions are made on responses only.
"""


class TestSystem:
    def test_health(self, client, db_session):
        response = client.get("/api/system/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["brew_batches"] == 0
        assert body["timestamp"].endswith("Z")


class TestBatchRoutes:
    def _setup(self, client):
        recipe = client.post("/api/planning/recipes", json={
            "name": "Pale Ale", "style": "APA", "batch_size_litres": 100,
        }).get_json()["recipe"]
        vessel = client.post("/api/batches/vessels", json={
            "name": "FV1", "vessel_type": "fermenter", "capacity_litres": 1000,
        }).get_json()["vessel"]
        return recipe, vessel

    def test_batch_flow(self, client, db_session):
        recipe, vessel = self._setup(client)

        created = client.post("/api/batches", json={
            "recipe_id": recipe["id"], "batch_size_litres": 100, "vessel_id": vessel["id"],
        })
        assert created.status_code == 201
        batch = created.get_json()["batch"]
        assert batch["status"] == "planned"

        response = client.post(f"/api/batches/{batch['id']}/transition", json={"status": "brewing"})
        assert response.status_code == 200
        assert response.get_json()["batch"]["status"] == "brewing"

        detail = client.get(f"/api/batches/{batch['id']}").get_json()
        assert detail["fermentation_log"] == []
        assert detail["consumptions"] == []

        listing = client.get("/api/batches?status=brewing").get_json()
        assert listing["count"] == 1

    def test_invalid_transition_is_409(self, client, db_session):
        recipe, vessel = self._setup(client)
        batch = client.post("/api/batches", json={
            "recipe_id": recipe["id"], "batch_size_litres": 100,
        }).get_json()["batch"]

        response = client.post(f"/api/batches/{batch['id']}/transition", json={"status": "completed"})

        assert response.status_code == 409
        body = response.get_json()
        assert "planned" in body["error"]
        assert body["details"] == {"from_status": "planned", "to_status": "completed"}

    def test_missing_status_is_400(self, client, db_session):
        response = client.post("/api/batches/1/transition", json={})
        assert response.status_code == 400

    def test_validation_error_is_400(self, client, db_session):
        recipe, _ = self._setup(client)
        response = client.post("/api/batches", json={"recipe_id": recipe["id"], "batch_size_litres": 0})
        assert response.status_code == 400
        assert "batch_size_litres" in response.get_json()["error"]

    def test_unknown_batch_is_404(self, client, db_session):
        response = client.get("/api/batches/9999")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestPurchasingRoutes:
    def test_over_receipt(self, client, db_session, supplier, malt):
        po = client.post("/api/purchase-orders", json={"supplier_id": supplier.id}).get_json()["purchase_order"]
        line = client.post(f"/api/purchase-orders/{po['id']}/lines", json={
            "inventory_item_id": malt.id, "quantity_ordered": 50,
        }).get_json()["line"]
        assert client.post(f"/api/purchase-orders/{po['id']}/transition", json={"status": "sent"}).status_code == 200

        first = client.post(f"/api/purchase-orders/lines/{line['id']}/receive", json={
            "quantity_received": 30, "lot_number": "MO-1",
        })
        assert first.status_code == 200
        assert first.get_json()["new_po_status"] == "partially_received"

        over = client.post(f"/api/purchase-orders/lines/{line['id']}/receive", json={
            "quantity_received": 25, "lot_number": "MO-2",
        })
        assert over.status_code == 409
        assert over.get_json()["details"]["remaining"] == 20

        position = client.get(f"/api/inventory/items/{malt.id}/position").get_json()["position"]
        assert position["quantity_on_hand"] == 30

    def test_receive_requires_lot_number(self, client, db_session):
        response = client.post("/api/purchase-orders/lines/1/receive", json={"quantity_received": 5})
        assert response.status_code == 400


    def test_supplier_lead_time_must_be_integer(self, client, db_session):
        response = client.post("/api/purchase-orders/suppliers", json={"name": "Hop Farm", "lead_time_days": "abc"})
        assert response.status_code == 400
        assert "lead_time_days" in response.get_json()["error"]

    def test_non_finite_receipt_is_400(self, client, db_session, supplier, malt):
        po = client.post("/api/purchase-orders", json={"supplier_id": supplier.id}).get_json()["purchase_order"]
        line = client.post(f"/api/purchase-orders/{po['id']}/lines", json={
            "inventory_item_id": malt.id, "quantity_ordered": 50,
        }).get_json()["line"]
        client.post(f"/api/purchase-orders/{po['id']}/transition", json={"status": "sent"})

        response = client.post(f"/api/purchase-orders/lines/{line['id']}/receive", json={
            "quantity_received": "nan", "lot_number": "LOT-N",
        })
        assert response.status_code == 400


class TestPlanningRoutes:
    def test_materials_empty(self, client, db_session):
        body = client.get("/api/planning/materials").get_json()
        assert body == {"items": [], "count": 0, "shortfall_count": 0}

    def test_recipe_endpoints(self, client, db_session, malt):
        created = client.post("/api/planning/recipes", json={
            "name": "Session IPA", "style": "IPA", "batch_size_litres": 200, "target_ibu": 40,
        })
        assert created.status_code == 201
        recipe = created.get_json()["recipe"]
        assert recipe["status"] == "draft"
        assert recipe["version"] == 1

        ingredient = client.post(f"/api/planning/recipes/{recipe['id']}/ingredients", json={
            "inventory_item_id": malt.id, "quantity": 30, "usage_stage": "mash",
        })
        assert ingredient.status_code == 201
        assert ingredient.get_json()["ingredient"]["unit"] == "kg"

        detail = client.get(f"/api/planning/recipes/{recipe['id']}").get_json()
        assert len(detail["ingredients"]) == 1

        version = client.post(f"/api/planning/recipes/{recipe['id']}/versions", json={"target_ibu": 45})
        assert version.status_code == 201
        child = version.get_json()["recipe"]
        assert child["version"] == 2
        assert child["parent_recipe_id"] == recipe["id"]
        assert child["target_ibu"] == 45

        lineage = client.get(f"/api/planning/recipes/{child['id']}/lineage").get_json()
        assert [r["id"] for r in lineage["items"]] == [child["id"], recipe["id"]]

        status = client.post(f"/api/planning/recipes/{child['id']}/status", json={"status": "active"})
        assert status.status_code == 200
        assert status.get_json()["recipe"]["status"] == "active"

    def test_recipe_rejects_bad_numbers(self, client, db_session):
        response = client.post("/api/planning/recipes", json={
            "name": "Stout", "style": "Stout", "batch_size_litres": "inf",
        })
        assert response.status_code == 400

    def test_version_rejects_unknown_field(self, client, db_session, recipe):
        response = client.post(f"/api/planning/recipes/{recipe.id}/versions", json={"colour": "black"})
        assert response.status_code == 400

    def test_sales_views(self, client, db_session, customer, recipe, keg_stock):
        order = client.post("/api/orders", json={
            "customer_id": customer.id, "delivery_date": "2030-06-01",
        }).get_json()["order"]
        client.post(f"/api/orders/{order['id']}/lines", json={
            "recipe_id": recipe.id, "format": "keg_50l", "quantity": 30, "finished_goods_id": keg_stock.id,
        })
        client.post(f"/api/orders/{order['id']}/transition", json={"status": "confirmed"})

        demand = client.get("/api/planning/demand").get_json()
        assert demand["weeks_ahead"] == 8
        assert demand["unfulfillable"][0]["shortfall"] == 10

        priority = client.get("/api/planning/packaging-priority").get_json()
        assert priority["items"][0]["order_demand"] == 30

        suggested = client.get("/api/planning/suggested-brews").get_json()
        assert suggested["items"][0]["unmet_quantity"] == 10
        assert suggested["items"][0]["latest_brew_date"] == "2030-05-11"

    def test_demand_weeks_must_be_positive_integer(self, client, db_session):
        assert client.get("/api/planning/demand?weeks=0").status_code == 400
        assert client.get("/api/planning/demand?weeks=abc").status_code == 400


class TestOrderRoutes:
    def _order(self, client, recipe, keg_stock, quantity):
        customer = client.post("/api/orders/customers", json={"name": "Harbour Bar"})
        assert customer.status_code == 201
        order = client.post("/api/orders", json={"customer_id": customer.get_json()["customer"]["id"]})
        assert order.status_code == 201
        order_id = order.get_json()["order"]["id"]

        line = client.post(f"/api/orders/{order_id}/lines", json={
            "recipe_id": recipe.id, "format": "keg_50l", "quantity": quantity, "finished_goods_id": keg_stock.id,
        })
        assert line.status_code == 201
        assert line.get_json()["order"]["subtotal_cents"] == quantity * 21000

        dated = client.post(f"/api/orders/{order_id}/delivery-date", json={"delivery_date": "2030-06-01"})
        assert dated.status_code == 200
        return order_id

    def _transition(self, client, order_id, status):
        return client.post(f"/api/orders/{order_id}/transition", json={"status": status})

    def _reserved(self, client):
        return client.get("/api/inventory/finished-goods").get_json()["items"][0]

    def test_order_flow_through_payment(self, client, db_session, recipe, keg_stock):
        order_id = self._order(client, recipe, keg_stock, 4)

        assert self._transition(client, order_id, "confirmed").status_code == 200
        picking = self._transition(client, order_id, "picking")
        assert picking.status_code == 200
        assert picking.get_json()["order"]["lines"][0]["quantity_reserved"] == 4
        assert self._reserved(client)["quantity_reserved"] == 4

        dispatched = self._transition(client, order_id, "dispatched").get_json()["order"]
        assert dispatched["lines"][0]["quantity_reserved"] == 0
        stock = self._reserved(client)
        assert stock["quantity_on_hand"] == 16
        assert stock["quantity_reserved"] == 0

        invoiced = self._transition(client, order_id, "invoiced").get_json()["order"]
        assert invoiced["invoice_number"].startswith("INV-")

        paid = self._transition(client, order_id, "paid")
        assert paid.status_code == 200
        assert paid.get_json()["order"]["paid_at"].endswith("Z")

        again = self._transition(client, order_id, "cancelled")
        assert again.status_code == 409

    def test_insufficient_stock_is_409(self, client, db_session, recipe, keg_stock):
        order_id = self._order(client, recipe, keg_stock, 25)
        self._transition(client, order_id, "confirmed")

        response = self._transition(client, order_id, "picking")

        assert response.status_code == 409
        body = response.get_json()
        assert "need 25, available 20" in body["error"]
        assert body["details"]["available"] == 20
        assert client.get(f"/api/orders/{order_id}").get_json()["order"]["status"] == "confirmed"

    def test_bad_line_quantity_is_400(self, client, db_session, customer):
        order = client.post("/api/orders", json={"customer_id": customer.id}).get_json()["order"]
        response = client.post(f"/api/orders/{order['id']}/lines", json={"quantity": "nan"})
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client, db_session):
        assert self._transition(client, 9999, "confirmed").status_code == 404


class TestInventoryRoutes:
    def test_item_lot_and_movements(self, client, db_session):
        item = client.post("/api/inventory/items", json={
            "name": "Cascade", "category": "hop", "unit": "kg", "unit_cost_cents": 3800,
        })
        assert item.status_code == 201
        item_id = item.get_json()["item"]["id"]

        lot = client.post(f"/api/inventory/items/{item_id}/lots", json={"lot_number": "CAS-1", "quantity": 10})
        assert lot.status_code == 201
        lot_body = lot.get_json()["lot"]
        assert lot_body["quantity_on_hand"] == 10
        assert lot_body["unit_cost_cents"] == 3800

        movement = client.post(f"/api/inventory/lots/{lot_body['id']}/movements", json={
            "movement_type": "written_off", "quantity": -2.5, "reason": "Oxidised",
        })
        assert movement.status_code == 201
        assert movement.get_json()["movement"]["quantity"] == -2.5

        lots = client.get(f"/api/inventory/items/{item_id}/lots").get_json()
        assert lots["items"][0]["quantity_on_hand"] == 7.5

        movements = client.get(f"/api/inventory/items/{item_id}/movements").get_json()
        assert movements["count"] == 2
        assert {m["movement_type"] for m in movements["items"]} == {"received", "written_off"}

        positions = client.get("/api/inventory/positions").get_json()
        assert positions["count"] == 1
        assert positions["items"][0]["name"] == "Cascade"
        assert positions["items"][0]["quantity_on_hand"] == 7.5
        assert positions["items"][0]["quantity_available"] == 7.5

    def test_movement_that_overdraws_is_409(self, client, db_session, malt):
        lot = client.post(f"/api/inventory/items/{malt.id}/lots", json={"lot_number": "MO-1", "quantity": 5}).get_json()["lot"]
        response = client.post(f"/api/inventory/lots/{lot['id']}/movements", json={
            "movement_type": "written_off", "quantity": -6,
        })
        assert response.status_code == 409

    def test_non_numeric_cost_is_400(self, client, db_session):
        response = client.post("/api/inventory/items", json={
            "name": "Cascade", "category": "hop", "unit": "kg", "unit_cost_cents": "abc",
        })
        assert response.status_code == 400
        assert "unit_cost_cents" in response.get_json()["error"]

    def test_non_finite_movement_is_400(self, client, db_session, malt):
        lot = client.post(f"/api/inventory/items/{malt.id}/lots", json={"lot_number": "MO-1", "quantity": 5}).get_json()["lot"]
        response = client.post(f"/api/inventory/lots/{lot['id']}/movements", json={
            "movement_type": "adjusted", "quantity": "nan",
        })
        assert response.status_code == 400


class TestQualityRoutes:
    def test_quality_check_crud(self, client, db_session, packaged_batch):
        created = client.post(f"/api/batches/{packaged_batch.id}/quality-checks", json={
            "check_type": "pre_package", "ph": 4.3, "dissolved_oxygen": 0.05,
        })
        assert created.status_code == 201
        check = created.get_json()["quality_check"]
        assert check["result"] == "pending"

        updated = client.patch(f"/api/batches/quality-checks/{check['id']}", json={"result": "fail"})
        assert updated.status_code == 200
        assert updated.get_json()["quality_check"]["result"] == "fail"

        listing = client.get(f"/api/batches/{packaged_batch.id}/quality-checks").get_json()
        assert listing["count"] == 1

        assert client.delete(f"/api/batches/quality-checks/{check['id']}").status_code == 200
        assert client.get(f"/api/batches/quality-checks/{check['id']}").status_code == 404

    def test_bad_check_is_400(self, client, db_session, packaged_batch):
        response = client.post(f"/api/batches/{packaged_batch.id}/quality-checks", json={
            "check_type": "pre_package", "ph": "nan",
        })
        assert response.status_code == 400

    def test_measurement_log(self, client, db_session, packaged_batch):
        client.post(f"/api/batches/{packaged_batch.id}/measurements", json={"og": 1.050})
        client.post(f"/api/batches/{packaged_batch.id}/measurements", json={"fg": 1.010})

        log = client.get(f"/api/batches/{packaged_batch.id}/measurements").get_json()

        assert log["count"] == 2
        assert log["items"][0]["og"] == 1.050
        assert log["items"][1]["fg"] == 1.010
        assert client.get("/api/batches/9999/measurements").status_code == 404
