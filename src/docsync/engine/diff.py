"""Diff engine: partition two API surfaces by element name and classify the result."""

from typing import Dict, Iterable, List, Optional

from docsync.models.api import (
    APIDiff,
    APIElement,
    ChangeDetail,
    ChangeDetailKind,
    ChangeSeverity,
    ModifiedAPI,
)

BREAKING_DETAIL_KINDS = {ChangeDetailKind.PARAMETERS, ChangeDetailKind.RETURN_TYPE}


def _index_by_name(elements: Iterable[APIElement]) -> Dict[str, APIElement]:
    # Later duplicates replace earlier ones.
    index: Dict[str, APIElement] = {}
    for element in elements:
        index[element.name] = element
    return index


def _compare_parameters(old: APIElement, new: APIElement) -> Optional[ChangeDetail]:
    old_params = old.parameters or []
    new_params = new.parameters or []

    if len(old_params) != len(new_params):
        return ChangeDetail(
            kind=ChangeDetailKind.PARAMETERS,
            description=f"Parameter count changed from {len(old_params)} to {len(new_params)}",
        )

    for old_param, new_param in zip(old_params, new_params):
        if (
            old_param.name != new_param.name
            or old_param.type != new_param.type
            or old_param.optional != new_param.optional
            or old_param.default_value != new_param.default_value
        ):
            return ChangeDetail(
                kind=ChangeDetailKind.PARAMETERS,
                description=f'Parameter "{old_param.name}" changed',
            )

    return None


def compare_elements(old: APIElement, new: APIElement) -> List[ChangeDetail]:
    """List every field-level difference between two versions of one element.

    Checks run in a fixed order: signature, parameters, return type, documentation.
    """
    changes: List[ChangeDetail] = []

    if old.signature != new.signature:
        changes.append(
            ChangeDetail(
                kind=ChangeDetailKind.SIGNATURE,
                description=f'Signature changed from "{old.signature}" to "{new.signature}"',
            )
        )

    param_change = _compare_parameters(old, new)
    if param_change:
        changes.append(param_change)

    if old.return_type != new.return_type:
        changes.append(
            ChangeDetail(
                kind=ChangeDetailKind.RETURN_TYPE,
                description=f'Return type changed from "{old.return_type or "void"}" to "{new.return_type or "void"}"',
            )
        )

    if old.documentation_text != new.documentation_text:
        changes.append(ChangeDetail(kind=ChangeDetailKind.DOCUMENTATION, description="Documentation was updated"))

    return changes


def analyze(old_elements: Iterable[APIElement], new_elements: Iterable[APIElement]) -> APIDiff:
    """Compare two element collections and sort every name into one bucket.

    Buckets are ordered by element name so the result does not depend on the
    order the parser emitted elements in. ``unchanged`` holds the old version.
    """
    old_index = _index_by_name(old_elements)
    new_index = _index_by_name(new_elements)
    diff = APIDiff()

    for name in sorted(new_index):
        if name not in old_index:
            diff.added.append(new_index[name])

    for name in sorted(old_index):
        old = old_index[name]
        new = new_index.get(name)
        if new is None:
            diff.removed.append(old)
            continue

        changes = compare_elements(old, new)
        if changes:
            diff.modified.append(ModifiedAPI(old=old, new=new, changes=changes))
        else:
            diff.unchanged.append(old)

    return diff


def added_only(elements: Iterable[APIElement]) -> APIDiff:
    """Diff for a brand new file: everything it exports is an addition."""
    return APIDiff(added=sorted(_index_by_name(elements).values(), key=lambda e: e.name))


def is_public_api_change(diff: APIDiff) -> bool:
    """Check whether any public element was added, removed or modified."""
    return (
        any(api.is_public for api in diff.added)
        or any(api.is_public for api in diff.removed)
        or any(mod.old.is_public or mod.new.is_public for mod in diff.modified)
    )


def calculate_severity(diff: APIDiff) -> ChangeSeverity:
    """Classify a diff; the first matching rule wins.

    1. breaking: a public element was removed, or a public element's
       parameters or return type changed
    2. major: a public element was added
    3. minor: a public element changed in anything other than its docs
    4. patch: everything else, including doc-only edits and the empty diff
    """
    if any(api.is_public for api in diff.removed):
        return ChangeSeverity.BREAKING
    if any(
        mod.old.is_public and any(change.kind in BREAKING_DETAIL_KINDS for change in mod.changes)
        for mod in diff.modified
    ):
        return ChangeSeverity.BREAKING

    if any(api.is_public for api in diff.added):
        return ChangeSeverity.MAJOR

    if any(
        mod.old.is_public and any(change.kind != ChangeDetailKind.DOCUMENTATION for change in mod.changes)
        for mod in diff.modified
    ):
        return ChangeSeverity.MINOR

    return ChangeSeverity.PATCH


def merge_diffs(diffs: Iterable[APIDiff]) -> APIDiff:
    """Concatenate per-file diffs bucket by bucket. Duplicates across files are kept."""
    combined = APIDiff()
    for diff in diffs:
        combined.added.extend(diff.added)
        combined.removed.extend(diff.removed)
        combined.modified.extend(diff.modified)
        combined.unchanged.extend(diff.unchanged)
    return combined
