"""Simple two-language (en/ko) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "ko": "MeteorGuard",
        "en": "MeteorGuard",
    },
    "eyebrow": {
        "ko": "행성 방어 콘솔",
        "en": "Planetary defense console",
    },
    "subtitle": {
        "ko": "대기 진입 위험, 폭풍 반경, 잠재적 위험 천체를 한눈에 확인하세요.",
        "en": "Visualize atmospheric entry risks, blast radii, and potentially hazardous objects in seconds.",
    },
    "card_inputs": {
        "ko": "시뮬레이션 입력",
        "en": "Simulation inputs",
    },
    "label_diameter": {
        "ko": "지름 (m)",
        "en": "Diameter (m)",
    },
    "label_velocity": {
        "ko": "속도 (km/s)",
        "en": "Velocity (km/s)",
    },
    "label_angle": {
        "ko": "진입 각도 (deg)",
        "en": "Entry angle (deg)",
    },
    "label_density": {
        "ko": "밀도 (kg/m³)",
        "en": "Density (kg/m³)",
    },
    "label_composition": {
        "ko": "구성",
        "en": "Composition",
    },
    "label_target": {
        "ko": "목표 위치",
        "en": "Target location",
    },
    "composition_stony": {
        "ko": "암석질",
        "en": "Stony",
    },
    "composition_iron": {
        "ko": "철질",
        "en": "Iron",
    },
    "composition_cometary": {
        "ko": "혜성질",
        "en": "Cometary",
    },
    "btn_run": {
        "ko": "시뮬레이션 실행",
        "en": "Run simulation",
    },
    "btn_running": {
        "ko": "시뮬레이션 실행 중...",
        "en": "Running simulation...",
    },
    "hint_click": {
        "ko": "팁: 지도를 클릭하면 진입 위치가 바뀌어요.",
        "en": "Tip: click anywhere on the map to update the entry location.",
    },
    "card_highlights": {
        "ko": "시뮬레이션 요약",
        "en": "Simulation highlights",
    },
    "badge_updated": {
        "ko": "업데이트됨",
        "en": "Updated",
    },
    "badge_waiting": {
        "ko": "실행 대기",
        "en": "Awaiting run",
    },
    "stat_regime": {
        "ko": "대기 영역",
        "en": "Atmospheric regime",
    },
    "stat_energy": {
        "ko": "에너지",
        "en": "Energy yield",
    },
    "stat_1psi": {
        "ko": "1 psi 반경",
        "en": "1 psi radius",
    },
    "stat_5psi": {
        "ko": "5 psi 반경",
        "en": "5 psi radius",
    },
    "empty_highlights": {
        "ko": "시나리오를 실행하면 에너지와 폭풍 지표가 표시돼요.",
        "en": "Run a scenario to see energy and blast metrics.",
    },
    "card_pha": {
        "ko": "잠재적 위험 소행성",
        "en": "Potentially hazardous asteroids",
    },
    "btn_refresh": {
        "ko": "목록 새로고침",
        "en": "Refresh list",
    },
    "btn_fetching": {
        "ko": "불러오는 중...",
        "en": "Fetching...",
    },
    "empty_pha": {
        "ko": "JPL SBDB에서 최신 PHA 후보를 불러오세요.",
        "en": "Load the latest PHA candidates from JPL SBDB.",
    },
    "map_entry": {
        "ko": "진입 좌표",
        "en": "Entry coordinate",
    },
    "map_zoom": {
        "ko": "줌",
        "en": "Zoom",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
