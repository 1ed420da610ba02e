"""
TCX writer: TcxDocument → Garmin TrainingCenterDatabase v2 XML.

Element order follows the TCX v2 schema. Per-trackpoint speed and running
cadence go into the ActivityExtension v2 TPX block under the ns3 prefix.
"""
from datetime import datetime, timezone

from lxml import etree

from trackforge.tcx.schema import (
    ACTIVITY_EXTENSION_NS,
    GARMIN_SCHEMA_LOCATION,
    GARMIN_TCX_NS,
    XSI_NS,
    Activity,
    Author,
    Creator,
    Lap,
    TcxDocument,
    Trackpoint,
    Version,
)

NSMAP = {
    None: GARMIN_TCX_NS,
    "ns3": ACTIVITY_EXTENSION_NS,
    "xsi": XSI_NS,
}

_XSI_TYPE = "{%s}type" % XSI_NS


def iso_z_format(moment: datetime) -> str:
    """UTC ISO-8601 with a Z suffix. Naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def create_element(tag: str, text=None, namespace: str = GARMIN_TCX_NS):
    element = etree.Element("{%s}%s" % (namespace, tag), nsmap=NSMAP)
    if text is not None:
        element.text = str(text)
    return element


def create_sub_element(parent, tag: str, text=None, namespace: str = GARMIN_TCX_NS):
    element = create_element(tag, text, namespace)
    parent.append(element)
    return element


def _add_heart_rate(parent, tag: str, value: int) -> None:
    element = create_sub_element(parent, tag)
    element.set(_XSI_TYPE, "HeartRateInBeatsPerMinute_t")
    create_sub_element(element, "Value", value)


def _add_version(parent, version: Version, tag: str = "Version") -> None:
    element = create_sub_element(parent, tag)
    create_sub_element(element, "VersionMajor", version.version_major)
    create_sub_element(element, "VersionMinor", version.version_minor)
    create_sub_element(element, "BuildMajor", version.build_major)
    create_sub_element(element, "BuildMinor", version.build_minor)


def add_trackpoint(track, trackpoint: Trackpoint) -> None:
    element = create_sub_element(track, "Trackpoint")
    create_sub_element(element, "Time", iso_z_format(trackpoint.time))

    position = create_sub_element(element, "Position")
    create_sub_element(position, "LatitudeDegrees", "{:.7f}".format(trackpoint.position.latitude_degrees))
    create_sub_element(position, "LongitudeDegrees", "{:.7f}".format(trackpoint.position.longitude_degrees))

    create_sub_element(element, "AltitudeMeters", trackpoint.altitude_meters)
    create_sub_element(element, "DistanceMeters", trackpoint.distance_meters)
    if trackpoint.heart_rate is not None:
        _add_heart_rate(element, "HeartRateBpm", trackpoint.heart_rate)
    if trackpoint.cadence is not None:
        create_sub_element(element, "Cadence", trackpoint.cadence)

    extensions = create_sub_element(element, "Extensions")
    tpx = create_sub_element(extensions, "TPX", namespace=ACTIVITY_EXTENSION_NS)
    create_sub_element(tpx, "Speed", trackpoint.speed, namespace=ACTIVITY_EXTENSION_NS)
    create_sub_element(tpx, "RunCadence", trackpoint.run_cadence, namespace=ACTIVITY_EXTENSION_NS)


def add_lap(activity_element, lap: Lap) -> None:
    element = create_sub_element(activity_element, "Lap")
    element.set("StartTime", iso_z_format(lap.start_time))
    create_sub_element(element, "TotalTimeSeconds", lap.total_time_seconds)
    create_sub_element(element, "DistanceMeters", lap.distance_meters)
    create_sub_element(element, "MaximumSpeed", lap.maximum_speed)
    create_sub_element(element, "Calories", lap.calories)
    _add_heart_rate(element, "AverageHeartRateBpm", lap.average_heart_rate)
    _add_heart_rate(element, "MaximumHeartRateBpm", lap.maximum_heart_rate)
    create_sub_element(element, "Intensity", lap.intensity)
    create_sub_element(element, "Cadence", lap.cadence)
    create_sub_element(element, "TriggerMethod", lap.trigger_method)

    track = create_sub_element(element, "Track")
    for trackpoint in lap.trackpoints:
        add_trackpoint(track, trackpoint)


def add_creator(activity_element, creator: Creator) -> None:
    element = create_sub_element(activity_element, "Creator")
    element.set(_XSI_TYPE, "Device_t")
    create_sub_element(element, "Name", creator.name)
    create_sub_element(element, "UnitId", creator.unit_id)
    create_sub_element(element, "ProductID", creator.product_id)
    _add_version(element, creator.version)


def add_author(root, author: Author) -> None:
    element = create_sub_element(root, "Author")
    element.set(_XSI_TYPE, "Application_t")
    create_sub_element(element, "Name", author.name)
    build = create_sub_element(element, "Build")
    _add_version(build, author.version)
    create_sub_element(element, "LangID", author.lang_id)
    create_sub_element(element, "PartNumber", author.part_number)


def add_activity(activities_element, activity: Activity) -> None:
    element = create_sub_element(activities_element, "Activity")
    element.set("Sport", activity.sport)
    create_sub_element(element, "Id", activity.id)
    for lap in activity.laps:
        add_lap(element, lap)
    add_creator(element, activity.creator)


def build_document(document: TcxDocument):
    """Build the lxml tree for a document."""
    root = create_element("TrainingCenterDatabase")
    root.set("{%s}schemaLocation" % XSI_NS, GARMIN_SCHEMA_LOCATION)
    activities = create_sub_element(root, "Activities")
    add_activity(activities, document.activity)
    add_author(root, document.author)
    return etree.ElementTree(root)


def to_tcx_string(document: TcxDocument) -> str:
    tree = build_document(document)
    return etree.tostring(
        tree.getroot(),
        pretty_print=True,
        xml_declaration=True,
        encoding="UTF-8",
    ).decode("utf-8")
