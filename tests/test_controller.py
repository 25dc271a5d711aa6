import pytest

from conftest import product_row, run
from product_cart.cart.models import PriceList
from product_cart.constants import ALL_PRODUCTS, MODE_EDIT, MODE_SUMMARY


@pytest.fixture
def loaded(controller, service):
    service.products["A"] = [
        product_row("p1", name="Widget", price=10.0, family="Service"),
        product_row("p2", name="Gadget", price=2.5, Brand="Acme"),
    ] + [product_row(f"x{i}", name=f"Extra {i}", price=1.0) for i in range(10)]

    async def scenario():
        await controller.set_currency("USD")
        await controller.select_price_list("A")

    run(scenario())
    return controller


# ============================================================================
# Scenario from price list pick to cart
# ============================================================================

def test_select_then_quick_add_twice(controller, service, host):
    service.price_lists = [PriceList("A", "Standard")]
    service.products["A"] = [product_row("p1", price=10.00)]

    async def scenario():
        await controller.load_price_lists()
        await controller.select_price_list("A")
        await controller.set_currency("USD")

    run(scenario())
    assert controller.quick_add("p1")
    assert controller.quick_add("p1")

    lines = controller.cart_lines
    assert len(lines) == 1
    assert lines[0].quantity == 2
    assert controller.total_amount == pytest.approx(20.00)
    assert host.toasts[-1].message == "Product p1 added to cart"


# ============================================================================
# Filtering / pagination through the controller
# ============================================================================

class TestBrowsing:
    def test_page_boundaries_are_noops(self, loaded):
        assert loaded.total_pages == 2
        loaded.previous_page()
        assert loaded.filter.current_page == 1
        loaded.next_page()
        loaded.next_page()
        assert loaded.filter.current_page == 2
        assert len(loaded.paginated_products) == 6
        loaded.go_to_page(9)
        assert loaded.filter.current_page == 2
        loaded.go_to_page(1)
        assert loaded.filter.current_page == 1

    def test_filter_change_resets_page(self, loaded):
        loaded.next_page()
        loaded.set_search("WID")
        assert loaded.filter.current_page == 1
        assert [p.product_id for p in loaded.paginated_products] == ["p1"]
        loaded.next_page()
        assert loaded.filter.current_page == 1

        loaded.set_search("")
        loaded.next_page()
        loaded.set_category("Service")
        assert loaded.filter.current_page == 1
        assert loaded.total_pages == 1

    def test_empty_result_still_one_page(self, loaded):
        loaded.set_search("nothing-matches")
        assert loaded.total_pages == 1
        assert not loaded.has_products_on_page
        assert not loaded.can_go_next

    def test_categories_and_search_visibility(self, loaded):
        assert loaded.show_search
        active = [c["name"] for c in loaded.categories if c["is_active"]]
        assert active == [ALL_PRODUCTS]
        loaded.back_to_price_lists()
        assert not loaded.show_search


# ============================================================================
# Cart operations
# ============================================================================

class TestCart:
    def test_inline_add_uses_and_resets_entered_qty(self, loaded):
        loaded.set_entered_qty("p2", "4")
        assert loaded.add_entered("p2")
        assert loaded.cart.get("p2").quantity == 4
        assert loaded.catalog.find_product("p2").entered_qty is None

    def test_inline_add_invalid_qty(self, loaded, host):
        loaded.set_entered_qty("p2", 0)
        assert not loaded.add_entered("p2")
        assert not loaded.has_cart_items
        assert host.toasts[-1].title == "Invalid Quantity"
        assert loaded.catalog.find_product("p2").entered_qty == 0

    def test_quick_add_unknown_product(self, loaded, host):
        assert not loaded.quick_add("zzz")
        assert host.toasts[-1].message == "Product not found"

    def test_update_to_zero_removes(self, loaded, host):
        loaded.quick_add("p1")
        assert loaded.update_line_qty("p1", 0)
        assert not loaded.has_cart_items
        assert host.toasts[-1].message == "Product removed from cart"

    def test_update_non_numeric_is_rejected(self, loaded, host):
        loaded.quick_add("p1")
        assert not loaded.update_line_qty("p1", "many")
        assert loaded.cart.get("p1").quantity == 1
        assert host.toasts[-1].severity == "error"

    def test_remove_absent_keeps_totals(self, loaded):
        loaded.quick_add("p1")
        before = (len(loaded.cart_lines), loaded.total_amount)
        loaded.remove_line("nope")
        assert (len(loaded.cart_lines), loaded.total_amount) == before

    def test_activated_order_blocks_mutation(self, loaded, host):
        loaded.set_record_status("Activated")
        assert loaded.is_order_activated
        assert not loaded.quick_add("p1")
        assert host.toasts[-1].severity == "warning"
        loaded.open_details("p1")
        assert loaded.disable_add_details
        assert not loaded.confirm_details_add()
        assert not loaded.has_cart_items

    def test_open_cart_requires_items(self, loaded):
        assert not loaded.open_cart()
        loaded.quick_add("p1")
        assert loaded.open_cart()
        assert loaded.submission.show_cart_modal

    def test_clear_cart_closes_and_resets(self, loaded):
        loaded.quick_add("p1")
        loaded.set_entered_qty("p2", 3)
        loaded.open_cart()
        loaded.clear_cart()
        assert not loaded.has_cart_items
        assert not loaded.submission.show_cart_modal
        assert loaded.catalog.find_product("p2").entered_qty is None

    def test_details_confirm(self, loaded, host):
        assert loaded.open_details("p2")
        loaded.modal.increment()
        assert loaded.confirm_details_add()
        assert loaded.cart.get("p2").quantity == 2
        assert not loaded.modal.is_open
        assert host.toasts[-1].message == "Gadget added to cart"

    def test_details_unknown_product(self, loaded):
        assert not loaded.open_details("zzz")
        assert not loaded.modal.is_open


# ============================================================================
# Submission
# ============================================================================

class TestSubmit:
    def test_success_summary_countdown_and_close(self, loaded, service, host, scheduler):
        loaded.quick_add("p1")
        loaded.quick_add("p2")
        loaded.set_entered_qty("x1", 5)

        assert run(loaded.submit()) is True
        sent = service.submitted[0]
        assert [(ln.product_ref, ln.quantity, ln.unit_price) for ln in sent] == [("p1", 1, 10.0), ("p2", 1, 2.5)]
        assert loaded.submission.mode == MODE_SUMMARY
        assert loaded.submission.show_cart_modal
        assert loaded.submission.countdown == 3
        assert loaded.catalog.find_product("x1").entered_qty is None
        assert host.refreshes == 1

        scheduler.advance(1.0)
        assert loaded.submission.countdown == 2
        assert loaded.submission.progress_width == pytest.approx(200 / 3)
        scheduler.advance(1.0)
        assert loaded.has_cart_items
        scheduler.advance(1.0)

        assert loaded.submission.mode == MODE_EDIT
        assert not loaded.submission.show_cart_modal
        assert not loaded.has_cart_items
        assert len(host.navigations) == 1
        assert host.navigations[0].record_id == "801xx0000001"
        assert host.navigations[0].tab == "related"
        assert scheduler.active == []

    def test_manual_close_cancels_auto_close(self, loaded, host, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())
        loaded.close_summary()
        assert scheduler.active == []
        scheduler.advance(10)
        assert len(host.navigations) == 1

    def test_failure_keeps_cart(self, loaded, service, host, scheduler, boom):
        loaded.quick_add("p1")
        service.fail["submit_order_lines"] = boom
        assert run(loaded.submit()) is False
        assert loaded.submission.mode == MODE_EDIT
        assert loaded.submission.countdown == 3
        assert loaded.cart.get("p1").quantity == 1
        assert host.toasts[-1].severity == "error"
        assert host.refreshes == 0
        assert scheduler.active == []
        assert not loaded.submission.is_submitting

    def test_empty_cart_does_nothing(self, controller, service, scheduler):
        assert run(controller.submit()) is False
        assert controller.submission.mode == MODE_EDIT
        assert not controller.submission.show_cart_modal
        assert service.submitted == []
        assert scheduler.active == []

    def test_retry_after_failure(self, loaded, service, boom):
        loaded.quick_add("p1")
        service.fail["submit_order_lines"] = boom
        run(loaded.submit())
        del service.fail["submit_order_lines"]
        assert run(loaded.submit()) is True
        assert len(service.submitted) == 1


def test_dispose_cancels_all_timers(loaded, scheduler):
    loaded.catalog.products[0].image_urls = ["a", "b"]
    loaded.open_details("p1")
    loaded.quick_add("p2")
    run(loaded.submit())
    loaded.dispose()
    assert scheduler.active == []


class TestSummaryInteractions:
    def test_open_cart_during_summary_keeps_auto_close(self, loaded, host, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())

        assert loaded.open_cart()
        assert loaded.submission.mode == MODE_SUMMARY

        scheduler.advance(10)
        assert loaded.submission.mode == MODE_EDIT
        assert not loaded.has_cart_items
        assert len(host.navigations) == 1
        assert scheduler.active == []

    def test_close_cart_during_summary_finishes_it(self, loaded, host, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())
        loaded.close_cart()
        assert not loaded.has_cart_items
        assert len(host.navigations) == 1
        assert scheduler.active == []

    def test_back_during_summary_navigates_once(self, loaded, host, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())
        loaded.back_to_price_lists()
        scheduler.advance(10)
        assert len(host.navigations) == 1
        assert scheduler.active == []

    def test_countdown_tick_outside_summary_stops_itself(self, loaded, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())
        loaded.submission.mode = MODE_EDIT
        scheduler.advance(1.0)
        assert loaded.submission.countdown == 3
        assert loaded.submission._countdown_handle is None

    def test_dispose_during_summary_does_not_navigate(self, loaded, host, scheduler):
        loaded.quick_add("p1")
        run(loaded.submit())
        loaded.dispose()
        scheduler.advance(10)
        assert host.navigations == []
        assert scheduler.active == []


def test_remove_absent_line_is_silent(loaded, host):
    loaded.quick_add("p1")
    toasts = len(host.toasts)
    assert not loaded.remove_line("nope")
    assert len(host.toasts) == toasts
    assert loaded.remove_line("p1")
    assert host.toasts[-1].message == "Product removed from cart"
