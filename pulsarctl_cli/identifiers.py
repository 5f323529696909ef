from __future__ import annotations

from dataclasses import dataclass

from .cli_shared import DEFAULT_NAMESPACE, DEFAULT_TENANT, InvalidArgument, MissingIdentifier

_FQ_NAME_LABELS = {
    "function": "Fully Qualified Function Name (FQFN)",
}

TOPIC_DOMAINS = ("persistent", "non-persistent")


@dataclass(frozen=True)
class ResourceIdentifier:
    tenant: str
    namespace: str
    name: str

    @property
    def fqn(self) -> str:
        return f"{self.tenant}/{self.namespace}/{self.name}"

    def __str__(self) -> str:
        return self.fqn


@dataclass(frozen=True)
class NamespaceName:
    tenant: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.tenant}/{self.namespace}"


@dataclass(frozen=True)
class TopicName:
    domain: str
    tenant: str
    namespace: str
    local_name: str

    @property
    def namespace_name(self) -> NamespaceName:
        return NamespaceName(self.tenant, self.namespace)

    def __str__(self) -> str:
        return f"{self.domain}://{self.tenant}/{self.namespace}/{self.local_name}"


def missing_identifier_message(resource: str) -> str:
    label = _FQ_NAME_LABELS.get(resource, "Fully Qualified Name")
    return f"you must specify a name for the {resource} or a {label}"


def _split_exact(raw: str, *, parts: int, shape: str, label: str) -> list[str]:
    segments = raw.split("/")
    if len(segments) != parts or any(not s.strip() for s in segments):
        raise InvalidArgument(f"invalid {label} {raw!r}: expected {shape}")
    return [s.strip() for s in segments]


def parse_fqn(raw: str, *, resource: str = "function") -> ResourceIdentifier:
    tenant, namespace, name = _split_exact(
        raw.strip(),
        parts=3,
        shape="tenant/namespace/name",
        label=f"fully qualified {resource} name",
    )
    return ResourceIdentifier(tenant=tenant, namespace=namespace, name=name)


def resolve_identifier(
    name_arg: str | None,
    tenant: str | None,
    namespace: str | None,
    name: str | None,
    *,
    resource: str = "function",
) -> ResourceIdentifier:
    """Resolve either a fully qualified name or a tenant/namespace/name triple.

    Exactly one form may be supplied. Supplying a fully qualified name together
    with any of the separate flags is rejected as ambiguous. No I/O happens here;
    whether the resource exists is for the admin service to say.
    """
    fqn = (name_arg or "").strip()
    separate = [(v or "").strip() for v in (tenant, namespace, name)]
    if fqn:
        if any(separate):
            raise InvalidArgument(
                f"ambiguous {resource} identifier: pass either a fully qualified name "
                f"({fqn!r}) or --tenant/--namespace/--name, not both"
            )
        return parse_fqn(fqn, resource=resource)
    if not all(separate):
        raise MissingIdentifier(missing_identifier_message(resource))
    return ResourceIdentifier(tenant=separate[0], namespace=separate[1], name=separate[2])


def parse_namespace_name(raw: str) -> NamespaceName:
    tenant, namespace = _split_exact(
        (raw or "").strip(),
        parts=2,
        shape="tenant/namespace",
        label="namespace name",
    )
    return NamespaceName(tenant=tenant, namespace=namespace)


def parse_topic_name(raw: str) -> TopicName:
    value = (raw or "").strip()
    if not value:
        raise InvalidArgument("invalid topic name '': must not be empty")
    domain = TOPIC_DOMAINS[0]
    if "://" in value:
        domain, _, value = value.partition("://")
        if domain not in TOPIC_DOMAINS:
            raise InvalidArgument(
                f"invalid topic domain {domain!r}: expected one of {', '.join(TOPIC_DOMAINS)}"
            )
        tenant, namespace, local = _split_exact(
            value, parts=3, shape="domain://tenant/namespace/topic", label="topic name"
        )
        return TopicName(domain, tenant, namespace, local)
    if "/" not in value:
        return TopicName(domain, DEFAULT_TENANT, DEFAULT_NAMESPACE, value)
    tenant, namespace, local = _split_exact(
        value, parts=3, shape="tenant/namespace/topic", label="topic name"
    )
    return TopicName(domain, tenant, namespace, local)
