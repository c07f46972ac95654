"""
StoreNet Topology Validator
============================

Read-only rule engine that turns a settled topology into a list of
:class:`~shared.models.Finding` objects.  Every rule runs on every
validation; findings are emitted in rule order, then device order, and
deduplicated by id so repeated runs never pile up identical entries.

Rules:
    network-loop                 Broadcast loop among data cables.
    router-wan-wrong-modem-port  Router WAN on the modem's coax port.
    wan-misuse                   Router WAN on something other than a modem.
    router-wan-not-connected     Router WAN left empty.
    modem-switch-conflict        Modem LAN and a router LAN on one switch.
    bypass-router                Endpoint or AP on the modem's raw segment.
    isolated                     Endpoint with no path to a router.
    misidentified-router         "Router" with LAN cables but no WAN.
    unknown-device               Cabled device of unknown type.
    multi-router                 Two routers cabled directly together.
    ap-no-poe                    AP plugged straight into a switch/router.
    ap-wrong-injector-port       AP on the injector's LAN IN port.
    injector-wrong-connection    Injector LAN IN on the modem or a WAN port.
    injector-isolated-switch     Injector LAN IN on a switch with no router.
    injector-no-power            Unpowered injector feeding an AP.
    ap-no-router-path            AP whose injector cannot reach a router.
    ap-not-connected             AP with no cable at all.
    ap-offline-health            Offline AP whose PoE chain looks correct
                                 (replaces the two AP findings above).

Loop detection builds a :class:`networkx.MultiGraph` of data, non-WAN
cables.  A connected component with at least as many edges as nodes
contains a cycle.  The component is stripped of dangling branches and
the remaining cycle core is reported once if it holds a switch, AP or
router.  Power cables and WAN links never count toward a loop.

Reachability questions (isolated, injector, AP path) read the
``connection_state`` computed by the resolver instead of re-deriving it.

References:
    - IEEE 802.1D-2004. Spanning Tree Protocol (why L2 loops storm).
    - Hagberg, A., Schult, D., & Swart, P. (2008). Exploring network
      structure, dynamics, and function using NetworkX. SciPy 2008.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Optional

import networkx as nx

from shared.logger import StoreNetLogger
from shared.models import Finding, Severity

from storenet.core.definitions import Capabilities, get_definition
from storenet.core.models import ConnectionState, Device, DeviceStatus, Port, PortRole
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("validator")

_ROUTER_REACHABLE = frozenset(
    {ConnectionState.ONLINE, ConnectionState.ASSOCIATED_NO_INTERNET}
)

OFFLINE_AP_OVERRIDE_RULE = "ap-offline-health"


def _caps(device: Device) -> Capabilities:
    return get_definition(device.type).capabilities


def _reaches_router(device: Device) -> bool:
    return device.connection_state in _ROUTER_REACHABLE


def _finding(
    rule: str,
    subject: str,
    message: str,
    severity: Severity,
    device_ids: Iterable[str],
) -> Finding:
    return Finding(
        id=f"{rule}-{subject}",
        rule=rule,
        message=message,
        severity=severity,
        device_ids=list(device_ids),
    )


class TopologyValidator:
    """Runs every topology rule against a graph.

    Usage::

        validator = TopologyValidator()
        findings = validator.validate(graph)

    Args:
        offline_ap_override: Apply the offline-AP tie-break that replaces
            connectivity findings with a hardware hint.
        disabled_rules: Rule ids whose findings are dropped.
    """

    def __init__(
        self,
        *,
        offline_ap_override: bool = True,
        disabled_rules: Iterable[str] = (),
    ) -> None:
        self.offline_ap_override = offline_ap_override
        self.disabled_rules = frozenset(disabled_rules)

    # ================================================================== #
    #  Entry point
    # ================================================================== #

    def validate(self, graph: TopologyGraph) -> list[Finding]:
        """Return the deduplicated findings for *graph*.  Never mutates it."""
        checks: list[Callable[[TopologyGraph], Iterator[Finding]]] = [
            self.check_loops,
            self.check_router_wan,
            self.check_modem_switch_conflict,
            self.check_router_bypass,
            self.check_isolated,
            self.check_misidentified,
            self.check_multi_router,
            self.check_ap_poe,
            self.check_injector_uplink,
            self.check_injector_power,
            self.check_ap_path,
        ]

        findings: list[Finding] = []
        seen: set[str] = set()
        for check in checks:
            for finding in check(graph):
                if finding.id not in seen:
                    seen.add(finding.id)
                    findings.append(finding)

        if self.offline_ap_override:
            findings = apply_offline_ap_override(graph, findings)

        if self.disabled_rules:
            findings = [f for f in findings if f.rule not in self.disabled_rules]

        logger.debug("Validation produced %d finding(s)", len(findings))
        return findings

    # ================================================================== #
    #  Rule: network loops
    # ================================================================== #

    @staticmethod
    def lan_graph(graph: TopologyGraph) -> nx.MultiGraph:
        """Build the multigraph of data cables that can carry a broadcast."""
        lan = nx.MultiGraph()
        lan.add_nodes_from(d.id for d in graph)
        for port, far in graph.cables():
            if port.is_power or far.is_power:
                continue
            if port.role == PortRole.WAN or far.role == PortRole.WAN:
                continue
            a = graph.owner_of(port.id)
            b = graph.owner_of(far.id)
            if a is None or b is None or a.id == b.id:
                continue
            lan.add_edge(a.id, b.id)
        return lan

    @staticmethod
    def loop_core(component: nx.MultiGraph) -> set[str]:
        """Strip dangling branches off *component*, leaving only the nodes on a cycle."""
        core = nx.MultiGraph(component)
        leaves = [n for n, deg in core.degree() if deg <= 1]
        while leaves:
            core.remove_nodes_from(leaves)
            leaves = [n for n, deg in core.degree() if deg <= 1]
        return set(core.nodes)

    def check_loops(self, graph: TopologyGraph) -> Iterator[Finding]:
        lan = self.lan_graph(graph)
        for component in nx.connected_components(lan):
            sub = lan.subgraph(component)
            if sub.number_of_edges() < sub.number_of_nodes():
                continue
            core = self.loop_core(sub)
            members = [d for d in graph if d.id in core]
            if not any(
                _caps(d).is_switch or _caps(d).is_ap or _caps(d).is_router
                for d in members
            ):
                continue
            yield _finding(
                "network-loop",
                min(core),
                "Network loop detected. Loops cause broadcast storms and "
                "take the whole network down.",
                Severity.ERROR,
                [d.id for d in members],
            )

    # ================================================================== #
    #  Rule: router WAN discipline
    # ================================================================== #

    def check_router_wan(self, graph: TopologyGraph) -> Iterator[Finding]:
        for router in graph:
            if not _caps(router).is_router:
                continue
            wan = router.first_port(PortRole.WAN)
            if wan is None or wan.connected_to is None:
                if wan is not None:
                    yield _finding(
                        "router-wan-not-connected",
                        router.id,
                        f"{router.name} WAN port is not connected. Connect it "
                        "to the ISP modem's LAN port for internet access.",
                        Severity.ERROR,
                        [router.id],
                    )
                continue

            far = graph.partner(wan)
            target = graph.neighbor(wan)
            if far is None or target is None:
                yield _finding(
                    "router-wan-not-connected",
                    router.id,
                    f"{router.name} WAN port is not connected. Connect it "
                    "to the ISP modem's LAN port for internet access.",
                    Severity.ERROR,
                    [router.id],
                )
                continue

            if _caps(target).is_modem:
                if far.role != PortRole.LAN:
                    yield _finding(
                        "router-wan-wrong-modem-port",
                        router.id,
                        f"{router.name} WAN is connected to the modem's "
                        f"{far.name} port. It must use the modem's LAN port, "
                        "not the ISP/Coax port.",
                        Severity.ERROR,
                        [router.id, target.id],
                    )
            # a WAN on an unknown device is covered by the unknown-device warning
            elif target.type != "unknown":
                yield _finding(
                    "wan-misuse",
                    router.id,
                    f"{router.name} WAN is plugged into {target.name} "
                    f"({target.type}). WAN must connect directly to the ISP "
                    "modem's LAN port.",
                    Severity.ERROR,
                    [router.id, target.id],
                )

    # ================================================================== #
    #  Rule: modem and router sharing a switch
    # ================================================================== #

    def check_modem_switch_conflict(self, graph: TopologyGraph) -> Iterator[Finding]:
        for modem in graph:
            if not _caps(modem).is_modem:
                continue
            lan = modem.first_port(PortRole.LAN)
            if lan is None:
                continue
            switch = graph.neighbor(lan)
            if switch is None or not _caps(switch).is_switch:
                continue
            if self._switch_has_router_lan(graph, switch):
                yield _finding(
                    "modem-switch-conflict",
                    modem.id,
                    "The ISP modem and a router are both serving LAN on the "
                    "same switch. This causes duplicate DHCP and random drops.",
                    Severity.ERROR,
                    [modem.id, switch.id],
                )

    @staticmethod
    def _switch_has_router_lan(graph: TopologyGraph, switch: Device) -> bool:
        """True when a router serves LAN into *switch*.

        A router whose WAN port is the one cabled to the switch is a
        client of the modem there, not a second DHCP server, so it does
        not count.  That case is reported as ``wan-misuse`` instead.
        """
        for port in switch.data_ports():
            far = graph.partner(port)
            neighbor = graph.neighbor(port)
            if far is None or neighbor is None:
                continue
            if _caps(neighbor).is_router and not far.is_power and far.role != PortRole.WAN:
                return True
        return False

    # ================================================================== #
    #  Rule: router bypass
    # ================================================================== #

    @staticmethod
    def modem_segment(graph: TopologyGraph) -> set[str]:
        """Return device ids on a modem's raw LAN side (modems excluded).

        Data cables become directed edges in both directions, except that
        no edge enters a router through its WAN port: the walk never
        crosses a power cable and stops at router WAN ports, which
        separate the segments.
        """
        flow = nx.DiGraph()
        flow.add_nodes_from(d.id for d in graph)
        for port, far in graph.cables():
            if port.is_power or far.is_power:
                continue
            a = graph.owner_of(port.id)
            b = graph.owner_of(far.id)
            if a is None or b is None:
                continue
            if not (_caps(b).is_router and far.role == PortRole.WAN):
                flow.add_edge(a.id, b.id)
            if not (_caps(a).is_router and port.role == PortRole.WAN):
                flow.add_edge(b.id, a.id)

        segment: set[str] = set()
        for modem in graph:
            if _caps(modem).is_modem:
                segment |= nx.descendants(flow, modem.id)
        return {d.id for d in graph if d.id in segment and not _caps(d).is_modem}

    def check_router_bypass(self, graph: TopologyGraph) -> Iterator[Finding]:
        segment = self.modem_segment(graph)
        for device in graph:
            caps = _caps(device)
            if (caps.is_endpoint or caps.is_ap) and device.id in segment:
                yield _finding(
                    "bypass-router",
                    device.id,
                    f"{device.name} is on the ISP modem segment. It should "
                    "sit behind the router.",
                    Severity.ERROR,
                    [device.id],
                )

    # ================================================================== #
    #  Rule: isolated endpoints
    # ================================================================== #

    def check_isolated(self, graph: TopologyGraph) -> Iterator[Finding]:
        for device in graph:
            if not _caps(device).is_endpoint or device.connection_state is None:
                continue
            if not _reaches_router(device):
                yield _finding(
                    "isolated",
                    device.id,
                    f"{device.name} is not connected to the router. It cannot "
                    "reach the POS servers or the internet.",
                    Severity.WARNING,
                    [device.id],
                )

    # ================================================================== #
    #  Rule: misidentified / unknown devices
    # ================================================================== #

    def check_misidentified(self, graph: TopologyGraph) -> Iterator[Finding]:
        for device in graph:
            if _caps(device).is_router:
                wan_cabled = any(p.connected_to for p in device.ports_with_role(PortRole.WAN))
                lan_cabled = any(p.connected_to for p in device.ports_with_role(PortRole.LAN))
                if not wan_cabled and lan_cabled:
                    yield _finding(
                        "misidentified-router",
                        device.id,
                        f"{device.name} is labelled as a router but has no WAN "
                        "connection. Confirm it is really a router and not a "
                        "switch or AP.",
                        Severity.WARNING,
                        [device.id],
                    )
            if device.type == "unknown" and any(p.connected_to for p in device.ports):
                yield _finding(
                    "unknown-device",
                    device.id,
                    f"{device.name} is unidentified. Please verify its type.",
                    Severity.WARNING,
                    [device.id],
                )

    # ================================================================== #
    #  Rule: routers cabled together
    # ================================================================== #

    def check_multi_router(self, graph: TopologyGraph) -> Iterator[Finding]:
        routers = [d for d in graph if _caps(d).is_router]
        for i, first in enumerate(routers):
            neighbors = {
                n.id for n in (graph.neighbor(p) for p in first.ports) if n is not None
            }
            for second in routers[i + 1:]:
                if second.id in neighbors:
                    yield Finding(
                        id=f"multi-router-{first.id}-{second.id}",
                        rule="multi-router",
                        message="Multiple routers are cabled directly together. "
                        "This often causes IP conflicts.",
                        severity=Severity.WARNING,
                        device_ids=[first.id, second.id],
                    )

    # ================================================================== #
    #  Rules: access points and PoE injectors
    # ================================================================== #

    def check_ap_poe(self, graph: TopologyGraph) -> Iterator[Finding]:
        for ap in graph:
            if not _caps(ap).is_ap:
                continue
            client = ap.first_port(PortRole.POE_CLIENT)
            if client is None:
                continue
            far = graph.partner(client)
            target = graph.neighbor(client)
            if far is None or target is None:
                continue
            caps = _caps(target)
            if caps.is_router or caps.is_switch:
                yield _finding(
                    "ap-no-poe",
                    ap.id,
                    f"{ap.name} is plugged directly into {target.name}. It must "
                    "connect to the PoE injector's PoE port to receive power "
                    "and data.",
                    Severity.ERROR,
                    [ap.id, target.id],
                )
            elif caps.is_poe_injector and far.role != PortRole.POE_SOURCE:
                yield _finding(
                    "ap-wrong-injector-port",
                    ap.id,
                    f"{ap.name} is on the injector's LAN port instead of the "
                    "PoE port. Move the cable to the injector's PoE port.",
                    Severity.ERROR,
                    [ap.id, target.id],
                )

    def check_injector_uplink(self, graph: TopologyGraph) -> Iterator[Finding]:
        for injector in graph:
            if not _caps(injector).is_poe_injector:
                continue
            uplink = injector.first_port(PortRole.UPLINK)
            if uplink is None:
                continue
            far = graph.partner(uplink)
            target = graph.neighbor(uplink)
            if far is None or target is None:
                continue
            if _caps(target).is_modem or far.role == PortRole.WAN:
                yield _finding(
                    "injector-wrong-connection",
                    injector.id,
                    "The PoE injector's LAN IN is not on the router's LAN. "
                    "Connect it to a router LAN port or to a switch that is "
                    "uplinked to the router.",
                    Severity.ERROR,
                    [injector.id, target.id],
                )
            elif _caps(target).is_switch and not _reaches_router(target):
                yield _finding(
                    "injector-isolated-switch",
                    injector.id,
                    "The PoE injector is connected to an isolated switch. "
                    "Connect the switch to the router's LAN.",
                    Severity.ERROR,
                    [injector.id, target.id],
                )

    def check_injector_power(self, graph: TopologyGraph) -> Iterator[Finding]:
        for injector in graph:
            if not _caps(injector).is_poe_injector:
                continue
            power = injector.first_port(PortRole.POWER_INPUT)
            if power is None or graph.partner(power) is not None:
                continue
            poe_out = injector.first_port(PortRole.POE_SOURCE)
            ap = graph.neighbor(poe_out) if poe_out is not None else None
            if ap is None or not _caps(ap).is_ap:
                continue
            yield _finding(
                "injector-no-power",
                injector.id,
                f"The PoE injector for {ap.name} has no power source. Plug "
                "the injector into a wall outlet or power strip.",
                Severity.ERROR,
                [injector.id, ap.id],
            )

    def check_ap_path(self, graph: TopologyGraph) -> Iterator[Finding]:
        for ap in graph:
            if not _caps(ap).is_ap:
                continue
            client = ap.first_port(PortRole.POE_CLIENT)
            upstream = graph.neighbor(client) if client is not None else None
            if upstream is None:
                yield _finding(
                    "ap-not-connected",
                    ap.id,
                    f"{ap.name} is not connected to the network. Connect it "
                    "to a PoE injector.",
                    Severity.WARNING,
                    [ap.id],
                )
            elif _caps(upstream).is_poe_injector and not _reaches_router(upstream):
                yield _finding(
                    "ap-no-router-path",
                    ap.id,
                    f"{ap.name} is not connected to the router, so OrderPads "
                    "and CakePops on it cannot reach the POS servers or the "
                    "internet.",
                    Severity.WARNING,
                    [ap.id],
                )


# ====================================================================== #
#  Offline-AP override
# ====================================================================== #


def poe_chain_looks_correct(graph: TopologyGraph, ap: Device) -> bool:
    """Return ``True`` when *ap* hangs off an injector's PoE port and the
    injector has both its power and LAN IN cables in place."""
    client: Optional[Port] = ap.first_port(PortRole.POE_CLIENT)
    if client is None:
        return False
    far = graph.partner(client)
    injector = graph.neighbor(client)
    if far is None or injector is None:
        return False
    if not _caps(injector).is_poe_injector or far.role != PortRole.POE_SOURCE:
        return False
    power = injector.first_port(PortRole.POWER_INPUT)
    uplink = injector.first_port(PortRole.UPLINK)
    return (
        power is not None
        and graph.partner(power) is not None
        and uplink is not None
        and graph.partner(uplink) is not None
    )


def apply_offline_ap_override(graph: TopologyGraph, findings: list[Finding]) -> list[Finding]:
    """Replace connectivity findings for offline, correctly wired APs.

    For each AP that is ``offline`` while its PoE chain looks correct,
    ``ap-no-router-path`` and ``ap-not-connected`` for that AP are dropped
    and a single ``ap-offline-health`` warning is appended.  Wiring
    findings are left alone.  Returns a new list.
    """
    result = list(findings)
    for ap in graph:
        if not _caps(ap).is_ap or ap.status != DeviceStatus.OFFLINE:
            continue
        if not poe_chain_looks_correct(graph, ap):
            continue
        suppressed = {f"ap-no-router-path-{ap.id}", f"ap-not-connected-{ap.id}"}
        result = [f for f in result if f.id not in suppressed]
        override = _finding(
            OFFLINE_AP_OVERRIDE_RULE,
            ap.id,
            f"{ap.name} is offline even though its cabling looks correct. "
            "Check the AP lights, reboot it, or verify its configuration.",
            Severity.WARNING,
            [ap.id],
        )
        if all(f.id != override.id for f in result):
            result.append(override)
    return result
