"""
tests/analyzers/vpc/nat_traffic/test_nat_models.py - 데이터 모델 테스트
"""

import pytest

from analyzers.vpc.nat_traffic.models import (
    FLOW_LOG_FIELDS,
    FLOW_LOG_FORMAT,
    FlowRecord,
    ProgressEvent,
    Route,
    RouteTable,
    ScanPhase,
    VPCEndpoint,
    parse_tags,
)


class TestFlowLogFormat:
    """Flow Log 사용자 지정 형식"""

    def test_field_order(self):
        assert len(FLOW_LOG_FIELDS) == 14
        assert FLOW_LOG_FIELDS[4] == "pkt-dstaddr"
        assert FLOW_LOG_FIELDS[9] == "bytes"

    def test_format_string(self):
        assert FLOW_LOG_FORMAT.startswith("${interface-id} ${srcaddr} ${dstaddr}")
        assert FLOW_LOG_FORMAT.endswith("${action} ${log-status}")


class TestFlowRecord:
    """FlowRecord 파싱 테스트"""

    LINE = "eni-0aaa 10.0.1.5 52.216.10.1 10.0.1.5 52.216.10.1 44321 443 6 10 4096 1700000000 1700000060 ACCEPT OK"

    def test_parse(self):
        record = FlowRecord.parse(self.LINE)

        assert record is not None
        assert record.interface_id == "eni-0aaa"
        assert record.bytes == 4096
        assert record.dstport == 443
        assert record.is_accepted is True

    def test_parse_too_few_fields(self):
        assert FlowRecord.parse("eni-0aaa 10.0.1.5 52.216.10.1") is None

    def test_parse_non_numeric(self):
        line = "eni-0aaa - - - - - - - - - - - - NODATA"
        record = FlowRecord.parse(line)

        assert record is not None
        assert record.bytes == 0
        assert record.destination == ""

    def test_destination_prefers_pkt_dstaddr(self):
        line = "eni-0aaa 10.0.1.5 10.0.0.200 10.0.1.5 52.216.10.1 1 443 6 1 100 0 0 ACCEPT OK"
        record = FlowRecord.parse(line)
        assert record.destination == "52.216.10.1"

    def test_destination_falls_back_to_dstaddr(self):
        line = "eni-0aaa 10.0.1.5 52.216.10.1 - - 1 443 6 1 100 0 0 ACCEPT OK"
        record = FlowRecord.parse(line)
        assert record.destination == "52.216.10.1"
        assert record.source == "10.0.1.5"

    def test_float_bytes(self):
        line = "eni-0aaa 10.0.1.5 52.216.10.1 - - 1 443 6 1 1.5e3 0 0 ACCEPT OK"
        assert FlowRecord.parse(line).bytes == 1500


class TestTopology:
    """토폴로지 모델 테스트"""

    def test_parse_tags_skips_aws_prefix(self):
        tags = [{"Key": "Name", "Value": "main"}, {"Key": "aws:cloudformation:stack-name", "Value": "x"}]
        assert parse_tags(tags) == {"Name": "main"}
        assert parse_tags(None) == {}

    def test_nat_display_name(self, nat_factory):
        nat = nat_factory("nat-0abc")
        assert nat.display_name == "nat-0abc (nat-0abc-name)"
        assert nat.to_dict()["availability_mode"] == "zonal"

    def test_regional_nat(self, nat_factory):
        assert nat_factory(regional=True).is_regional is True

    @pytest.mark.parametrize(
        "service_name,expected",
        [
            ("com.amazonaws.us-east-1.s3", "s3"),
            ("com.amazonaws.us-east-1.dynamodb", "dynamodb"),
            ("com.amazonaws.us-east-1.ecr.api", "ecr.api"),
            ("custom", "custom"),
        ],
    )
    def test_endpoint_service(self, service_name, expected):
        endpoint = VPCEndpoint("vpce-1", "vpc-1", service_name, "Gateway")
        assert endpoint.service == expected

    def test_route_table_default_nat(self):
        rt = RouteTable(
            route_table_id="rtb-1",
            vpc_id="vpc-1",
            routes=(
                Route("10.0.0.0/16", "local", "gateway"),
                Route("0.0.0.0/0", "nat-0aaa", "nat-gateway"),
            ),
        )
        assert rt.default_nat_gateway == "nat-0aaa"
        assert rt.routes_through_nat is True

    def test_route_table_igw_default(self):
        rt = RouteTable("rtb-2", "vpc-1", routes=(Route("0.0.0.0/0", "igw-1", "gateway"),))
        assert rt.routes_through_nat is False


class TestProgress:
    """ScanPhase / ProgressEvent 테스트"""

    def test_terminal_phases(self):
        assert ScanPhase.DONE.is_terminal
        assert ScanPhase.FAILED.is_terminal
        assert not ScanPhase.COLLECT.is_terminal

    def test_percent(self):
        event = ProgressEvent(ScanPhase.COLLECT, elapsed_seconds=30, remaining_seconds=90)
        assert event.percent == 25.0

    def test_percent_unknown(self):
        assert ProgressEvent(ScanPhase.DISCOVER).percent is None

    def test_percent_zero_total(self):
        assert ProgressEvent(ScanPhase.COLLECT, elapsed_seconds=0, remaining_seconds=0).percent == 100.0
