"""Cross-version helpers for the PyChrono builds we run against."""

import pychrono as chrono


def set_gravity(sys, gvec):
    """Cross-version gravity setter for ChSystemNSC/SMC across PyChrono builds."""
    for name in ("Set_G_acc", "SetGravity", "Set_G_acceleration", "Set_Gacc"):
        if hasattr(sys, name):
            getattr(sys, name)(gvec)
            return
    if hasattr(sys, "Set_g_acc"):
        sys.Set_g_acc(gvec)
    else:
        raise AttributeError("No gravity setter in this PyChrono build")


def prefer_bullet(sys):
    """Prefer Bullet collision if available; ignore if not present."""
    try:
        sys.SetCollisionSystemType(chrono.ChCollisionSystem.Type_BULLET)
    except Exception:
        pass


def tune_collision_defaults(envelope=0.003, margin=0.002):
    """Set global suggested envelope/margin (guards for older builds)."""
    try:
        chrono.ChCollisionModel.SetDefaultSuggestedEnvelope(envelope)
        chrono.ChCollisionModel.SetDefaultSuggestedMargin(margin)
    except Exception:
        pass


def set_single_thread(sys):
    """Force single-thread stepping; the mate scanner already runs beside the solver."""
    for name in ("SetNumThreads", "SetNumThreadsParallel"):
        if hasattr(sys, name):
            try:
                getattr(sys, name)(1)
            except Exception:
                pass


def set_body_fixed(body, fixed):
    """`SetBodyFixed` was renamed `SetFixed` in Chrono 9."""
    for name in ("SetBodyFixed", "SetFixed"):
        if hasattr(body, name):
            getattr(body, name)(bool(fixed))
            return
    raise AttributeError("No fixed-body setter in this PyChrono build")


def set_link_disabled(link, disabled):
    """Switch a link off (`True`) or back on (`False`)."""
    if hasattr(link, "SetDisabled"):
        link.SetDisabled(bool(disabled))
    elif hasattr(link, "SetActive"):
        link.SetActive(not disabled)
    else:
        raise AttributeError("No link enable/disable setter in this PyChrono build")


def sim_time(sys):
    """Current simulated time of a system."""
    for name in ("GetChTime", "GetTime"):
        if hasattr(sys, name):
            return float(getattr(sys, name)())
    raise AttributeError("No time getter in this PyChrono build")


def system_bodies(sys):
    """Rigid bodies of a system as a Python list."""
    for name in ("Get_bodylist", "GetBodies"):
        if hasattr(sys, name):
            return list(getattr(sys, name)())
    raise AttributeError("No body list getter in this PyChrono build")
