from __future__ import annotations

from claws_assistant.sessions.models import Context, ContextMode, ResourceRef
from claws_assistant.tools.log_groups import default_registry


def build_system_prompt(services: list[str], context: Context | None = None) -> str:
    supported_logs = ", ".join(default_registry().supported())
    prompt = f"""\
You are an AWS resource assistant in claws.

<available_services>
{', '.join(services)}
</available_services>

<tool_usage>
When a user asks about AWS resources, you MUST call the appropriate tool. \
Do not just describe what you would do, actually call the tool.
Use ONLY the service names listed in available_services above. Do not guess or use similar names.
All resource tools require a region parameter. Use the profile parameter when querying cross-profile resources.

Available tools:
- list_resources(service): Lists resource types for a service
- query_resources(service, resource_type, region, profile?, limit?, offset?): Lists resources \
(default: 100, max: 2000, supports pagination)
- get_resource_detail(service, resource_type, region, id, cluster?, profile?): Gets resource details
- tail_logs(service, resource_type, region, id, cluster?, profile?): Fetches CloudWatch logs for a resource
  - Supported: {supported_logs}
  - cluster parameter required for ecs/services and ecs/tasks
- search_aws_docs(query): Search AWS documentation
</tool_usage>

<response_format>
Be concise. Use markdown for formatting.
</response_format>"""

    if context is None:
        return prompt

    if context.user_regions:
        prompt += f"""

<user_selected_regions>{', '.join(context.user_regions)}
These are ALL regions the user is currently browsing.
In list mode, query resources across ALL these regions (call query_resources for each).
For specific resources (detail/diff mode), use the region from current_context instead.
</user_selected_regions>"""

    if context.user_profiles:
        prompt += f"""

<user_selected_profiles>{', '.join(context.user_profiles)}
These are ALL profile IDs the user is currently browsing.
In list mode, query resources across ALL these profiles (call query_resources for each).
For specific resources (detail/diff mode), use the profile from current_context instead.
</user_selected_profiles>"""

    if context.mode == ContextMode.LIST:
        prompt += _list_context(context)
    elif context.mode == ContextMode.DIFF:
        prompt += _diff_context(context)
    else:
        prompt += _single_context(context)
    return prompt


def _list_context(ctx: Context) -> str:
    if not ctx.service:
        return ""

    line = f"service={ctx.service}, resource_type={ctx.resource_type}, count={ctx.resource_count}"
    if ctx.filter_text:
        line += f', filter="{ctx.filter_text}"'
    if ctx.service == "securityhub" and ctx.resource_type == "findings":
        if ctx.toggles.get("ShowResolved"):
            line += ", show_resolved=true"
        else:
            line += ", show_resolved=false (use include_resolved=true in query_resources for all)"
    return (
        f'\n<current_context mode="list">\n{line}\n</current_context>'
        "\nIMPORTANT: When the user asks to list or analyze resources, call query_resources for EACH "
        "combination of user_selected_regions and user_selected_profiles to get the complete view "
        "across all selected contexts."
    )


def _describe_ref(label: str, ref: ResourceRef) -> str:
    line = f"{label}: id={ref.id}, name={ref.name}"
    for key in ("region", "profile", "cluster"):
        value = getattr(ref, key)
        if value:
            line += f", {key}={value}"
    return line


def _diff_context(ctx: Context) -> str:
    if ctx.diff_left is None or ctx.diff_right is None:
        return ""

    return (
        f'\n<current_context mode="diff">\nservice={ctx.service}, resource_type={ctx.resource_type}'
        f"\n{_describe_ref('left', ctx.diff_left)}"
        f"\n{_describe_ref('right', ctx.diff_right)}"
        "\n</current_context>"
        "\nIMPORTANT: Call get_resource_detail twice (once for left, once for right) "
        "using each resource's specific region and profile."
    )


def _single_context(ctx: Context) -> str:
    if not ctx.service:
        return ""

    parts = [f"service={ctx.service}"]
    for key, value in (
        ("resource_type", ctx.resource_type),
        ("region", ctx.resource_region),
        ("id", ctx.resource_id),
        ("profile", ctx.resource_profile),
        ("cluster", ctx.cluster),
        ("log_group", ctx.log_group),
    ):
        if value:
            parts.append(f"{key}={value}")
    return (
        f"\n<current_context>{', '.join(parts)}</current_context>"
        "\nIMPORTANT: Use the region and profile from current_context when querying this resource."
    )
