"""
Known vcpkg port name -> CMake imported target.

Ports not listed here export a target named after the port itself.
"""

from typing import Dict

CMAKE_TARGETS: Dict[str, str] = {
    "abseil": "absl::base",
    "benchmark": "benchmark::benchmark",
    "boost": "Boost::boost",
    "catch2": "Catch2::Catch2",
    "cli11": "CLI11::CLI11",
    "curl": "CURL::libcurl",
    "eigen3": "Eigen3::Eigen",
    "fmt": "fmt::fmt",
    "glfw3": "glfw",
    "glm": "glm::glm",
    "gtest": "GTest::gtest",
    "libpng": "PNG::PNG",
    "libjpeg-turbo": "JPEG::JPEG",
    "nlohmann-json": "nlohmann_json::nlohmann_json",
    "openssl": "OpenSSL::SSL",
    "protobuf": "protobuf::libprotobuf",
    "range-v3": "range-v3::range-v3",
    "spdlog": "spdlog::spdlog",
    "sqlite3": "unofficial::sqlite3::sqlite3",
    "tinyxml2": "tinyxml2::tinyxml2",
    "yaml-cpp": "yaml-cpp::yaml-cpp",
    "zlib": "ZLIB::ZLIB",
    "zstd": "zstd::libzstd",
}


def cmake_target_for(package_name: str) -> str:
    return CMAKE_TARGETS.get(package_name, package_name)
