"""
Shadow definitions for the compiler oracle.

Minimal stand-ins for Apple framework symbols, compiled alongside each
candidate so parse-only validation works on machines without the SDKs.
"""

from pathlib import Path

SHADOW_DEFINITIONS = """\
import Foundation

// SwiftData & persistence
@attached(member, names: arbitrary) public macro Model() = #externalMacro(module: "None", type: "None")
public struct Attribute { public static func unique() -> Attribute { Attribute() } }

// SwiftUI core
public protocol View { var body: Any { get } }
public struct Text: View { public var body: Any; public init(_ t: String) {} }
public struct VStack<Content>: View { public var body: Any; public init(spacing: CGFloat? = nil, @ViewBuilder content: () -> Content) {} }
public struct HStack<Content>: View { public var body: Any; public init(spacing: CGFloat? = nil, @ViewBuilder content: () -> Content) {} }
public struct Image: View { public init(systemName: String) {} }
public struct Button<Content>: View { public init(action: @escaping () -> Void, @ViewBuilder label: () -> Content) {} }

// Property wrappers & state
@propertyWrapper public struct State<Value> { public var wrappedValue: Value; public init(wrappedValue: Value) { self.wrappedValue = wrappedValue } }
@propertyWrapper public struct EnvironmentObject<Value> { public var wrappedValue: Value; public init() { } }

// Networking & Combine
public protocol Codable: Decodable, Encodable {}
public class ObservableObject: NSObject {}
"""


def load_shadow(shadow_file: Path | None = None) -> str:
    """Return the shadow definitions, from a file override if one is configured."""
    if shadow_file is None:
        return SHADOW_DEFINITIONS
    return shadow_file.read_text(encoding="utf-8")
