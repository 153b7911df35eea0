"""Tests for operation-specific renderers and the telemetry tree."""

from __future__ import annotations

from storectl.output.renderers import compact, render_quiet, render_result
from storectl.services.result import ServiceError, ServiceResult


class TestRenderResult:
    def test_generic_renderer(self) -> None:
        result = ServiceResult(ok=True, op="show_basket", data={"basket_id": "B1", "count": 2})
        output = render_result(result)
        assert output.startswith("OK")
        assert "basket_id: B1" in output
        assert "count: 2" in output

    def test_no_ansi_without_terminal(self) -> None:
        output = render_result(ServiceResult(ok=True, op="show_store", data={"store_id": "S1"}))
        assert "\x1b" not in output

    def test_error_detail_only_when_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="run_script",
            error=ServiceError(
                code="SCRIPT_UNREADABLE",
                message="Cannot read script x.script",
                detail={"path": "x.script", "lines_read": 0},
            ),
        )
        assert "path: x.script" not in render_result(result)
        assert "path: x.script" in render_result(result, verbose=True)

    def test_run_script_without_errors(self) -> None:
        result = ServiceResult(
            ok=True,
            op="run_script",
            data={"source": "s.script", "lines_read": 2, "succeeded": 2, "failed": 0, "errors": []},
        )
        output = render_result(result)
        assert "source: s.script" in output
        assert "Reason" not in output


class TestRenderQuiet:
    def test_ok(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="show_store")) == "OK: show_store"

    def test_error_without_detail(self) -> None:
        assert render_quiet(ServiceResult(ok=False, op="show_store")).startswith("ERROR: show_store")


class TestTelemetryTreeRendering:
    def test_renders_span_tree_when_verbose(self) -> None:
        result = ServiceResult(
            ok=True,
            op="run_script",
            data={"lines_read": 2, "succeeded": 2, "failed": 0},
            meta={
                "duration_ms": 3.42,
                "telemetry": {
                    "name": "ScriptService.run_file",
                    "duration_ms": 3.42,
                    "children": [
                        {"name": "StoreService.provision_store", "duration_ms": 0.12},
                        {"name": "StoreService.show_store", "duration_ms": 0.05},
                    ],
                },
            },
        )
        output = render_result(result, verbose=True)
        assert "3.42ms" in output
        assert "StoreService.provision_store" in output
        assert "StoreService.show_store" in output

    def test_children_are_indented(self) -> None:
        result = ServiceResult(
            ok=True,
            op="show_store",
            meta={
                "telemetry": {
                    "name": "outer",
                    "duration_ms": 1.0,
                    "children": [{"name": "inner", "duration_ms": 0.5}],
                }
            },
        )
        lines = render_result(result, verbose=True).splitlines()
        outer = next(line for line in lines if line.endswith("outer"))
        inner = next(line for line in lines if line.endswith("inner"))
        assert len(inner) - len(inner.lstrip()) > len(outer) - len(outer.lstrip())

    def test_no_tree_without_verbose(self) -> None:
        result = ServiceResult(
            ok=True,
            op="show_store",
            meta={"telemetry": {"name": "StoreService.show_store", "duration_ms": 1.0}},
        )
        assert "StoreService.show_store" not in render_result(result)


class TestEntityRendering:
    def test_entity_block(self) -> None:
        inventory = {
            "id": "I1",
            "capacity": 10,
            "count": 3,
            "product_id": "P1",
            "type": "standard",
            "location": {"store_id": "S1", "aisle_number": "A1", "shelf_id": "SH1"},
        }
        output = render_result(ServiceResult(ok=True, op="show_inventory", data={"inventory": inventory}))
        assert "inventory I1" in output
        assert "    count: 3" in output
        assert "location: S1:A1:SH1" in output

    def test_store_children_listed_by_id(self) -> None:
        store = {
            "id": "S1",
            "aisles": [{"number": "A1", "shelves": []}, {"number": "A2", "shelves": []}],
            "devices": ["D1"],
            "baskets": [],
        }
        output = render_result(ServiceResult(ok=True, op="show_store", data={"store": store}))
        assert "aisles: A1, A2" in output
        assert "devices: D1" in output
        assert "baskets: -" in output


class TestCompact:
    def test_item_map(self) -> None:
        assert compact({"P1": 2, "P2": 1}) == "P1=2, P2=1"

    def test_store_location(self) -> None:
        assert compact({"store_id": "S1", "aisle_number": "A1"}) == "S1:A1"

    def test_empty_and_none(self) -> None:
        assert compact(None) == "-"
        assert compact({}) == "-"
        assert compact(0) == "0"

    def test_nested_entity_by_id(self) -> None:
        assert compact({"id": "C1", "first_name": "Ada"}) == "C1"
