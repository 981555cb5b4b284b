import pytest

from canteen.core.exceptions import ItemNotFoundError, ValidationError
from canteen.models.menu import Availability
from canteen.services.events import ITEM_UPDATED
from canteen.services.menu_service import DEFAULT_MENU, MenuService


class TestMenuService:
    """菜单服务测试"""

    def test_list_sorted_by_category_then_name(self, menu_service, sample_items):
        items = menu_service.list_items()
        assert [i.item_id for i in items] == ["coffee", "donut", "burger"]

    def test_get_item(self, menu_service, sample_items):
        item = menu_service.get_item("burger")
        assert item.name == "Chicken Burger"
        assert item.price == 8.0
        assert item.remaining == 5
        assert item.version == 0

    def test_get_missing_item(self, menu_service):
        with pytest.raises(ItemNotFoundError) as exc_info:
            menu_service.get_item("ghost")
        assert exc_info.value.details == {"item_id": "ghost"}

    def test_availability(self, menu_service, db_helper, sample_items):
        assert menu_service.get_item("coffee").availability(10) == Availability.AVAILABLE
        assert menu_service.get_item("burger").availability(10) == Availability.LOW

        db_helper.set_current_ordered("burger", 5)
        assert menu_service.get_item("burger").availability(10) == Availability.SOLD_OUT

        menu_service.set_manual_sold_out("coffee", True)
        assert menu_service.get_item("coffee").availability(10) == Availability.UNAVAILABLE

    def test_manual_sold_out_bumps_version_and_publishes(self, menu_service, feed, db_helper, sample_items):
        item = menu_service.set_manual_sold_out("donut", True, actor="staff")

        assert item.manual_sold_out is True
        assert item.version == 1
        assert db_helper.get_item_row("donut") == {"current_ordered": 0, "manual_sold_out": True, "version": 1}
        events = feed.since(0)
        assert [e.kind for e in events] == [ITEM_UPDATED]
        assert events[0].payload["manual_sold_out"] is True
        assert db_helper.count_logs("stock_toggle") == 1

    def test_manual_sold_out_missing_item(self, menu_service):
        with pytest.raises(ItemNotFoundError):
            menu_service.set_manual_sold_out("ghost", True)

    def test_seed_default_menu_only_when_empty(self, test_db):
        service = MenuService(test_db)

        assert service.seed_default_menu() == len(DEFAULT_MENU)
        assert service.seed_default_menu() == 0

        donut = service.get_item("chocolate-donut")
        assert donut.total_limit == 0
        assert donut.availability(10) == Availability.SOLD_OUT
        assert donut.image_url == "images/donut.jpg"
        assert all(item.image_url for item in service.list_items())

    def test_add_existing_item_is_a_validation_error(self, menu_service, sample_items):
        """重复的菜品ID不是并发冲突，不会被重试"""
        with pytest.raises(ValidationError) as exc_info:
            menu_service.add_item("burger", "Another Burger", 900, 3, "Meal")

        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert exc_info.value.details["item_id"] == "burger"
        assert menu_service.get_item("burger").name == "Chicken Burger"
