# ch_core/tests/helpers.py


def scoped(organization, team):
    """
    Scope headers for the DRF test client (needs the HTTP_ prefix).
    """
    return {
        "HTTP_X_ORGANIZATION_ID": str(organization.id),
        "HTTP_X_TEAM_ID": str(team.id),
    }
