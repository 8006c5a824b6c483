"""Shared building blocks for the rule catalog."""

from abc import abstractmethod
from typing import Iterable, List, Optional, Sequence

from akshealth.engine.rule import Rule
from akshealth.models import AuditConfiguration, Container, Finding, Pod, ResourceInventory


class PodContainerRule(Rule):
    """Emits one finding per pod that has at least one offending container.

    A pod without containers never violates a container-level rule.
    """

    #: Formatted with `containers`, a comma-separated list of offending names.
    message_template: str = ""

    @abstractmethod
    def violates(self, container: Container, pod: Pod) -> bool:
        pass

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        findings = []
        for pod in inventory.pods:
            offending = [c.name for c in pod.containers if self.violates(c, pod)]
            if offending:
                findings.append(self.finding(
                    self.message_template.format(containers=", ".join(offending)),
                    scope=pod.ref
                ))
        return findings


def pod_matches(pod: Pod, name_fragments: Sequence[str] = (),
                label_values: Iterable[str] = (),
                image_fragments: Sequence[str] = ()) -> bool:
    """Match a pod by name fragment, by the value of well-known app labels, or by container image."""
    name = pod.name.lower()
    if any(fragment in name for fragment in name_fragments):
        return True

    wanted = {value.lower() for value in label_values}
    for key in ("app", "k8s-app", "name", "app.kubernetes.io/name", "component"):
        value = pod.labels.get(key)
        if value and value.lower() in wanted:
            return True

    for container in pod.containers:
        image = (container.image or "").lower()
        if any(fragment in image for fragment in image_fragments):
            return True
    return False


def first_match(pods: Iterable[Pod], **criteria) -> Optional[Pod]:
    for pod in pods:
        if pod_matches(pod, **criteria):
            return pod
    return None
