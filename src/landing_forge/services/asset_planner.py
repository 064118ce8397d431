"""Asset plans per mechanic and generation prompts."""

from landing_forge.domain.analysis import LandingAnalysis, Palette
from landing_forge.domain.mechanics import AssetDescriptor, MechanicType

_BACKGROUND = AssetDescriptor("background", "background", 1920, 1080, False)
_LOGO = AssetDescriptor("logo", "logo", 512, 256, True)

_PLANS: dict[MechanicType, tuple[AssetDescriptor, ...]] = {
    MechanicType.WHEEL: (
        _BACKGROUND,
        _LOGO,
        AssetDescriptor("wheel", "prize wheel", 800, 800, True),
        AssetDescriptor("wheelFrame", "wheel frame", 900, 900, True),
        AssetDescriptor("pointer", "wheel pointer", 128, 200, True),
        AssetDescriptor("button", "SPIN button", 256, 80, True),
    ),
    MechanicType.BOXES: (
        _BACKGROUND,
        _LOGO,
        AssetDescriptor("boxClosed", "closed gift box", 300, 350, True),
        AssetDescriptor("boxOpen", "open gift box", 300, 350, True),
        AssetDescriptor("character", "character", 400, 600, True),
    ),
    MechanicType.CRASH: (
        _BACKGROUND,
        _LOGO,
        AssetDescriptor("characterIdle", "character standing", 256, 256, True),
        AssetDescriptor("characterMove", "character walking", 256, 256, True),
        AssetDescriptor("characterLose", "character losing", 256, 256, True),
        AssetDescriptor("obstacle1", "first obstacle", 200, 200, True),
        AssetDescriptor("obstacle2", "second obstacle", 200, 200, True),
        AssetDescriptor("cellDefault", "board cell", 128, 128, True),
        AssetDescriptor("cellActive", "highlighted board cell", 128, 128, True),
    ),
    MechanicType.LOADER: (_BACKGROUND, _LOGO),
    MechanicType.SCRATCH: (
        _BACKGROUND,
        _LOGO,
        AssetDescriptor("scratchCard", "scratch card", 500, 300, False),
        AssetDescriptor("prize", "prize banner", 400, 200, True),
    ),
}


def get_asset_plan(mechanic_type: MechanicType | str) -> list[AssetDescriptor]:
    """Return the images to request for a mechanic, defaulting to the wheel."""
    try:
        mechanic = MechanicType(mechanic_type)
    except ValueError:
        mechanic = MechanicType.WHEEL
    plan = _PLANS.get(mechanic, _PLANS[MechanicType.WHEEL])
    return list(plan)


def build_asset_prompt(
    descriptor: AssetDescriptor, analysis: LandingAnalysis, palette: Palette
) -> str:
    """Build the image prompt for one descriptor."""
    slot_name = analysis.slot_name or "casino"
    theme = analysis.theme or "casino luxury"
    style = analysis.style or "modern vibrant"
    lines = [
        f'Create a {descriptor.display_name} for "{slot_name}" slot game landing page.',
        f"Theme: {theme}",
        f"Style: {style}",
        f"Colors: primary {palette.primary}, secondary {palette.secondary}, "
        f"accent {palette.accent}",
    ]
    if descriptor.needs_transparency:
        lines.append(
            "IMPORTANT: Generate on SOLID WHITE BACKGROUND (#FFFFFF) for easy "
            "background removal. No shadows on background."
        )
    else:
        lines.append("Full scene, no empty corners.")
    lines.append(f"Dimensions: {descriptor.width}x{descriptor.height} pixels")
    return "\n".join(lines)
